"""Decide whether a target version is covered by a vulnerability record"""

from ..core.models import VulnerabilityRecord
from .versions import compare_versions, versions_equal


def matches(target: str, record: VulnerabilityRecord) -> bool:
    """True when ``target`` satisfies the record's version constraint.

    Exact-version records only match an equal version. Range records match
    when the target lies inside the inclusive bounds; an empty bound is open.
    """
    if record.version_number:
        return versions_equal(target, record.version_number)

    if record.version_start and compare_versions(target, record.version_start) < 0:
        return False
    if record.version_end and compare_versions(target, record.version_end) > 0:
        return False
    return True
