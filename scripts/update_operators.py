"""
Rebuilds operators.json from the GSMA feed and the nPerf per-country
listings. Exits non-zero when the file cannot be written.
"""

from CoverageChecker.log import configure_logging
from CoverageChecker.reconcile import run
from CoverageChecker.settings import load_settings, log_level


def main():
    settings = load_settings()
    configure_logging(level=log_level(settings), force=True)
    return run(settings)


if __name__ == "__main__":
    raise SystemExit(main())
