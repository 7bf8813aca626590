"""CPE parsing and database product classification.

Maps CPE 2.3 names (``cpe:2.3:a:oracle:mysql:8.0.33:*:...``) to the vendor and
product names stored with each record, and decides which CPEs belong to the
tracked database products.
"""

from dataclasses import dataclass
from typing import Optional

from ..core.models import Severity


# CPE values meaning "any" and "not applicable"
CPE_WILDCARDS = {"*", "-"}

CANONICAL_VENDORS = {
    "postgresql": "PostgreSQL",
    "microsoft": "Microsoft",
    "oracle": "Oracle",
}

CANONICAL_ORACLE_PRODUCTS = {
    "mysql": "MySQL",
    "database": "Database",
}


@dataclass(frozen=True)
class CPEName:
    """Vendor, product and version fields of a CPE name"""
    vendor: str = ""
    product: str = ""
    version: str = ""


def parse_cpe(cpe: str) -> CPEName:
    """Split a CPE 2.3 name into vendor/product/version.

    Names with fewer than five fields give an empty CPEName, which is never
    tracked. Wildcard versions are returned as "".
    """
    parts = (cpe or "").split(":")
    if len(parts) < 5:
        return CPEName()

    version = parts[5] if len(parts) > 5 else ""
    if version in CPE_WILDCARDS:
        version = ""
    return CPEName(vendor=parts[3], product=parts[4], version=version)


def is_tracked_product(vendor: str, product: str) -> bool:
    """Whether the vendor/product pair is one of the scanned databases"""
    v = vendor.lower()
    p = product.lower()
    if v == "oracle" and p in ("mysql", "database"):
        return True
    if v == "postgresql" and p == "postgresql":
        return True
    if v == "microsoft" and "sql" in p:
        return True
    return False


def canonical_vendor(vendor: str, product: str) -> str:
    return CANONICAL_VENDORS.get(vendor.lower(), vendor.title())


def canonical_product(vendor: str, product: str) -> str:
    v = vendor.lower()
    p = product.lower()
    if v == "postgresql":
        return "PostgreSQL"
    if v == "microsoft":
        return "SQL Server"
    if v == "oracle" and p in CANONICAL_ORACLE_PRODUCTS:
        return CANONICAL_ORACLE_PRODUCTS[p]
    return product.title()


def severity_for_score(score: Optional[float]) -> Severity:
    """Severity label from a 0-10 base score"""
    if score is None:
        return Severity.UNKNOWN
    elif score >= 9.0:
        return Severity.CRITICAL
    elif score >= 7.0:
        return Severity.HIGH
    elif score >= 4.0:
        return Severity.MEDIUM
    else:
        return Severity.LOW
