# CoverageChecker/matching.py
"""Operator name normalisation and registry matching."""

import re
import unicodedata
from typing import Iterable, Optional

from .models import RegistryRecord

STOPWORDS = (
    "movil", "mobile", "cellular", "wireless", "telecom",
    "communications", "ltd", "inc", "s.a", "gmbh",
)

_MARKS_RE = re.compile("[\u0300-\u036f]")
_PARENS_RE = re.compile(r"\([^)]*\)")
# word boundaries count ASCII letters only, so "telecomø" loses "telecom"
_STOPWORDS_RE = re.compile(
    r"\b(" + "|".join(re.escape(w) for w in STOPWORDS) + r")\b", re.ASCII
)
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")

# Shorter names only match exactly.
MIN_PARTIAL_LENGTH = 4


def normalize(name: Optional[str]) -> str:
    """
    Canonical form of an operator name for comparison:
    "Telefónica Móviles (Movistar) S.A." -> "telefonicamoviles".
    """
    if not name:
        return ""
    s = unicodedata.normalize("NFD", name.lower())
    s = _MARKS_RE.sub("", s)
    s = _PARENS_RE.sub("", s)
    s = _STOPWORDS_RE.sub("", s)
    s = _NON_ALNUM_RE.sub("", s)
    # "mo-bile" collapses to a stopword; drop it so normalize stays idempotent
    if s in STOPWORDS:
        return ""
    return s


def names_match(left: str, right: str) -> bool:
    """Both arguments are already normalised."""
    if left == right:
        return True
    if len(left) >= MIN_PARTIAL_LENGTH and len(right) >= MIN_PARTIAL_LENGTH:
        return left in right or right in left
    return False


def find_match(candidate_name: str, registry: Iterable[RegistryRecord]) -> Optional[RegistryRecord]:
    """
    Returns the first registry record whose name matches ``candidate_name``.

    Registry order decides between several qualifying records, so callers
    must pass the registry in fetch order.
    """
    wanted = normalize(candidate_name)
    for record in registry:
        if names_match(wanted, normalize(record.name)):
            return record
    return None
