"""Logging setup shared by the web app and the scripts."""

import logging


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger once.

    Pass ``force=True`` to reconfigure from a script entry point that runs
    after the package was imported.
    """

    logging.basicConfig(
        level=level,
        format="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
        force=force,
    )
    # urllib3 logs every redirect hop at DEBUG
    logging.getLogger("urllib3").setLevel(max(level, logging.INFO))
