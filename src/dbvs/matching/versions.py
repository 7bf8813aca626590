"""Version normalization and comparison.

Feeds describe versions as ``8.0.33``, ``19c`` or ``15.0.2000.5``. Both helpers
here only look at the runs of decimal digits in a version string:

* :func:`version_key` folds the first three runs into one integer so the store
  can pre-filter with plain integer comparisons. It is lossy and never the
  final word on a match.
* :func:`compare_versions` compares every run and is the authoritative order.
"""

import re
from typing import List, Optional

_DIGITS = re.compile(r"\d+")

# Largest value a single component may take inside a version key
KEY_COMPONENT_LIMIT = 999


def tokenize_version(version: str) -> List[int]:
    """All digit runs of ``version`` as integers, left to right"""
    return [int(run) for run in _DIGITS.findall(version or "")]


def version_key(version: Optional[str]) -> Optional[int]:
    """Comparable integer key ``major*1_000_000 + minor*1_000 + patch``.

    Returns None for empty input, for strings without digits, and for versions
    whose first three components do not fit in three decimal digits (for
    example the ``2000`` in ``15.0.2000.5``), since those would collide with
    other keys.
    """
    if not version or not version.strip():
        return None

    tokens = tokenize_version(version)
    if not tokens:
        return None

    major, minor, patch = (tokens + [0, 0, 0])[:3]
    if max(major, minor, patch) > KEY_COMPONENT_LIMIT:
        return None

    return major * 1_000_000 + minor * 1_000 + patch


def compare_versions(a: str, b: str) -> int:
    """Return -1, 0 or 1 as ``a`` is older than, equal to or newer than ``b``.

    Digit runs are compared pairwise, padding the shorter sequence with zeros.
    When every run is equal the longer trimmed string wins, so ``8.0.1a`` sorts
    after ``8.0.1``. Two strings of equal length that differ only in their
    non-digit characters compare equal.
    """
    aa = (a or "").strip()
    bb = (b or "").strip()
    ta = tokenize_version(aa)
    tb = tokenize_version(bb)

    for i in range(max(len(ta), len(tb))):
        xa = ta[i] if i < len(ta) else 0
        xb = tb[i] if i < len(tb) else 0
        if xa != xb:
            return 1 if xa > xb else -1

    if len(aa) != len(bb):
        return 1 if len(aa) > len(bb) else -1
    return 0


def versions_equal(a: str, b: str) -> bool:
    return compare_versions(a, b) == 0
