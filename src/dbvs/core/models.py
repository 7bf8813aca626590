"""Core data models for DBVS"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


class Source(Enum):
    """Feed origin of a vulnerability record"""
    CVE = "CVE"
    CNVD = "CNVD"
    ALIYUN = "ALIYUN"
    SCAN = "scan"


class Severity(Enum):
    """Severity labels"""
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    UNKNOWN = "UNKNOWN"


@dataclass
class VulnerabilityRecord:
    """One advisory for a vendor/product, keyed by exact version or by range.

    Empty strings mean "absent" for the three version fields. A record with a
    non-empty ``version_number`` is an exact-version record and its range
    bounds are ignored during matching.
    """
    source: Source
    vendor: str
    product: str
    vuln_id: str
    version_start: str = ""
    version_end: str = ""
    version_number: str = ""
    vuln_name: str = ""
    description: str = ""
    cvss_score: Optional[float] = None
    cnvd_score: Optional[float] = None
    aliyun_score: Optional[float] = None
    final_score: Optional[float] = None
    severity: Severity = Severity.UNKNOWN
    patch_info: str = ""
    scan_date: Optional[datetime] = None
    id: Optional[int] = None

    def natural_key(self) -> Tuple[str, str, str, str, str, str, str]:
        """Uniqueness key used for upserts"""
        return (
            self.source.value,
            self.vendor,
            self.product,
            self.version_start,
            self.version_end,
            self.version_number,
            self.vuln_id,
        )

    @property
    def is_exact(self) -> bool:
        return bool(self.version_number)


@dataclass
class TargetDescriptor:
    """The database under scan"""
    vendor: str
    product: str
    version: str
    db_type: str = ""
    addr: str = ""
