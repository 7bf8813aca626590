"""Typed view of NVD CVE API 2.0 pages.

Only the fields DBVS uses are modelled. A page that is not a JSON object with a
``vulnerabilities`` list raises :class:`MalformedPayloadError`; individual
entries missing their id or with unexpected shapes are skipped.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..core.exceptions import MalformedPayloadError


# Preferred CVSS metric families, newest first
CVSS_METRIC_KEYS = ('cvssMetricV31', 'cvssMetricV30', 'cvssMetricV2')


@dataclass
class CPEMatch:
    """One ``cpeMatch`` entry of a configuration node"""
    criteria: str
    vulnerable: bool
    version_start: str = ""
    version_end: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> Optional['CPEMatch']:
        if not isinstance(data, dict):
            return None
        criteria = data.get('criteria')
        if not isinstance(criteria, str) or not criteria:
            return None
        return cls(
            criteria=criteria,
            vulnerable=data.get('vulnerable') is True,
            version_start=_first_string(data, 'versionStartIncluding', 'versionStartExcluding'),
            version_end=_first_string(data, 'versionEndIncluding', 'versionEndExcluding'),
        )


@dataclass
class NVDVulnerability:
    """A CVE with its description, base score and CPE matches"""
    cve_id: str
    description: str = ""
    base_score: Optional[float] = None
    cpe_matches: List[CPEMatch] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> Optional['NVDVulnerability']:
        """Parse a ``vulnerabilities[]`` item, or None when it is unusable"""
        if not isinstance(data, dict) or not isinstance(data.get('cve'), dict):
            return None
        cve = data['cve']
        cve_id = cve.get('id')
        if not isinstance(cve_id, str) or not cve_id:
            return None

        return cls(
            cve_id=cve_id,
            description=_pick_description(cve.get('descriptions')),
            base_score=_extract_score(cve.get('metrics')),
            cpe_matches=_extract_matches(cve.get('configurations')),
        )


@dataclass
class NVDPage:
    """One page of the CVE API"""
    start_index: int
    results_per_page: int
    total_results: int
    vulnerabilities: List[NVDVulnerability] = field(default_factory=list)
    skipped: int = 0

    @classmethod
    def from_payload(cls, payload: Any, start_index: int = 0) -> 'NVDPage':
        if not isinstance(payload, dict):
            raise MalformedPayloadError("NVD page is not a JSON object")
        items = payload.get('vulnerabilities', [])
        if not isinstance(items, list):
            raise MalformedPayloadError("NVD page 'vulnerabilities' is not a list")

        page = cls(
            start_index=_as_int(payload.get('startIndex'), start_index),
            results_per_page=_as_int(payload.get('resultsPerPage'), len(items)),
            total_results=_as_int(payload.get('totalResults'), 0),
        )
        for item in items:
            vuln = NVDVulnerability.from_dict(item)
            if vuln is None:
                page.skipped += 1
                continue
            page.vulnerabilities.append(vuln)

        if page.skipped:
            logging.debug(f"Skipped {page.skipped} malformed entries at offset {page.start_index}")
        return page


def _as_int(value: Any, default: int) -> int:
    return value if isinstance(value, int) and not isinstance(value, bool) else default


def _first_string(data: Dict, *keys: str) -> str:
    for key in keys:
        value = data.get(key)
        if isinstance(value, str) and value:
            return value
    return ""


def _pick_description(descriptions: Any) -> str:
    """English description, else the first one"""
    if not isinstance(descriptions, list):
        return ""
    rows = [d for d in descriptions if isinstance(d, dict) and isinstance(d.get('value'), str)]
    for row in rows:
        if str(row.get('lang', '')).lower() == 'en':
            return row['value']
    return rows[0]['value'] if rows else ""


def _extract_score(metrics: Any) -> Optional[float]:
    if not isinstance(metrics, dict):
        return None
    for key in CVSS_METRIC_KEYS:
        entries = metrics.get(key)
        if not isinstance(entries, list) or not entries:
            continue
        first = entries[0]
        cvss_data = first.get('cvssData') if isinstance(first, dict) else None
        if not isinstance(cvss_data, dict):
            continue
        score = cvss_data.get('baseScore')
        if isinstance(score, (int, float)) and not isinstance(score, bool):
            return float(score)
    return None


def _extract_matches(configurations: Any) -> List[CPEMatch]:
    """Flatten configurations[].nodes[].cpeMatch[]"""
    matches = []
    if not isinstance(configurations, list):
        return matches
    for config in configurations:
        nodes = config.get('nodes') if isinstance(config, dict) else None
        if not isinstance(nodes, list):
            continue
        for node in nodes:
            entries = node.get('cpeMatch') if isinstance(node, dict) else None
            if not isinstance(entries, list):
                continue
            for entry in entries:
                match = CPEMatch.from_dict(entry)
                if match is not None:
                    matches.append(match)
    return matches
