# CoverageChecker/reconcile.py
"""
Builds operators.json from the GSMA registry and the nPerf listings.

Process:
  1. fetch the GSMA registry once
  2. fetch the nPerf listing of every country, one after another, matching
     each operator against the registry
  3. add the GSMA operators nPerf does not know
  4. sort and write the artifact, replacing the previous one
"""

import json
import logging
import os
import re
import tempfile
import time
from dataclasses import dataclass
from functools import partial
from typing import Callable, Iterable, List, Sequence

from deepdiff import DeepDiff

from .countries import ALL_COUNTRIES, country_code_for_name, country_label
from .errors import CoverageError, PersistFailure
from .matching import find_match
from .models import ListingRecord, OperatorRecord, RegistryRecord
from .sources import fetch_listings, fetch_registry

log = logging.getLogger(__name__)

PROGRESS_EVERY = 50

RegistryLoader = Callable[[], Sequence[RegistryRecord]]
ListingLoader = Callable[[str], Iterable[ListingRecord]]


def _load_registry(registry_loader: RegistryLoader) -> List[RegistryRecord]:
    log.info("Fetching GSMA data...")
    try:
        registry = list(registry_loader())
    except CoverageError as e:
        log.warning("GSMA registry unavailable, continuing without it: %s", e)
        return []
    log.info("Loaded %d operators from GSMA", len(registry))
    return registry


def reconcile(
    countries: Sequence[str] = ALL_COUNTRIES,
    *,
    registry_loader: RegistryLoader,
    listing_loader: ListingLoader,
    delay: float = 0.05,
    sleep: Callable[[float], None] = time.sleep,
) -> List[OperatorRecord]:
    """
    Runs one reconciliation pass and returns the sorted operator list.

    Countries are fetched strictly one at a time with ``delay`` seconds
    between them. A failing country contributes nothing; a failing registry
    leaves every listing unmatched.
    """
    registry = _load_registry(registry_loader)

    operators: List[OperatorRecord] = []
    seen_ids = set()
    claimed = set()

    log.info("Fetching nPerf data for %d countries...", len(countries))
    for processed, code in enumerate(countries, start=1):
        try:
            listings = list(listing_loader(code))
        except CoverageError as e:
            log.warning("Skipping %s (%s): %s", code, country_label(code), e)
            listings = []

        for listing in listings:
            if listing.listing_id in seen_ids:
                log.debug("Duplicate nPerf operator %s in %s", listing.listing_id, code)
                continue
            match = find_match(listing.listing_name, registry)
            registry_id = ""
            if match is not None:
                registry_id = match.registry_id
                claimed.add(registry_id)
            operators.append(OperatorRecord.from_listing(listing, registry_id))
            seen_ids.add(listing.listing_id)

        # nPerf rate limit
        sleep(delay)

        if processed % PROGRESS_EVERY == 0:
            log.info("Processed %d/%d countries...", processed, len(countries))

    log.info("Loaded %d operators from nPerf", len(operators))

    missing = [r for r in registry if r.registry_id not in claimed]
    log.info("Found %d GSMA operators not in nPerf", len(missing))
    for record in missing:
        code = country_code_for_name(record.country_name)
        if not code:
            log.info("No country code for GSMA operator %s (%r), dropped",
                     record.registry_id, record.country_name)
            continue
        op = OperatorRecord.from_registry(record, code)
        if op.operator_id in seen_ids:
            continue
        operators.append(op)
        seen_ids.add(op.operator_id)

    operators.sort(key=lambda op: op.sort_key)
    return operators


# ---------- artifact ----------

@dataclass(frozen=True)
class DiffSummary:
    added: int = 0
    removed: int = 0
    changed: int = 0


_ROOT_KEY_RE = re.compile(r"^root\[(['\"])(.*?)\1\]")


def _root_keys(paths) -> set:
    keys = set()
    for path in paths:
        m = _ROOT_KEY_RE.match(path)
        if m:
            keys.add(m.group(2))
    return keys


def diff_operators(previous: Sequence[dict], current: Sequence[dict]) -> DiffSummary:
    """Counts operators added, removed and modified, keyed by operatorId."""
    old = {str(op.get("operatorId")): op for op in previous if isinstance(op, dict)}
    new = {str(op.get("operatorId")): op for op in current}
    dd = DeepDiff(old, new).to_dict()
    changed = _root_keys(dd.get("values_changed", {})) | _root_keys(dd.get("type_changes", {}))
    changed |= _root_keys(dd.get("dictionary_item_added", [])) & set(old)
    changed |= _root_keys(dd.get("dictionary_item_removed", [])) & set(new)
    return DiffSummary(
        added=len(set(new) - set(old)),
        removed=len(set(old) - set(new)),
        changed=len(changed),
    )


def _read_previous(path: str) -> list:
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return []
    except (OSError, ValueError) as e:
        log.warning("Previous %s unreadable, not diffing: %s", path, e)
        return []
    return data if isinstance(data, list) else []


def persist(operators: Sequence[OperatorRecord], path: str) -> DiffSummary:
    """
    Writes the operators as an indented JSON array, replacing ``path``
    atomically. Raises PersistFailure when the file cannot be written.
    """
    data = [op.to_dict() for op in operators]
    summary = diff_operators(_read_previous(path), data)

    directory = os.path.dirname(os.path.abspath(path))
    tmp_path = None
    try:
        fd, tmp_path = tempfile.mkstemp(prefix=".operators-", suffix=".json", dir=directory)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        os.chmod(tmp_path, 0o644)
        os.replace(tmp_path, path)
    except OSError as e:
        if tmp_path and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise PersistFailure(f"Failed to write {path}: {e}") from e

    log.info("Operators changed: %d added, %d removed, %d modified",
             summary.added, summary.removed, summary.changed)
    return summary


def run(config: dict, *, session=None, sleep: Callable[[float], None] = time.sleep) -> int:
    """
    Full update as run by scripts/update_operators.py.
    Returns the process exit status.
    """
    log.info("Starting data update...")
    timeout = config["REQUEST_TIMEOUT"]
    operators = reconcile(
        registry_loader=partial(fetch_registry, config["GSMA_FEED_URL"], session=session, timeout=timeout),
        listing_loader=partial(fetch_listings, url=config["NPERF_API_URL"], session=session, timeout=timeout),
        delay=config["API_DELAY"],
        sleep=sleep,
    )

    path = config["OPERATORS_PATH"]
    try:
        persist(operators, path)
    except PersistFailure as e:
        log.error("%s", e)
        return 1

    log.info("Successfully saved %d operators to %s", len(operators), path)
    return 0
