"""JSON format output formatter"""

import json
from dataclasses import asdict
from typing import Dict, List, Optional

import click

from ...core.models import TargetDescriptor, VulnerabilityRecord


class JSONFormatter:
    """JSON format output formatter"""

    @staticmethod
    def record_to_dict(record: VulnerabilityRecord) -> Dict:
        data = asdict(record)

        # Convert enums and datetime objects to strings
        data['source'] = record.source.value
        data['severity'] = record.severity.value
        data['scan_date'] = record.scan_date.isoformat() if record.scan_date else None

        return data

    @staticmethod
    def format_records(records: List[VulnerabilityRecord]) -> str:
        """Format records as a JSON array"""
        return json.dumps([JSONFormatter.record_to_dict(r) for r in records], indent=2)

    @staticmethod
    def format_scan(target: TargetDescriptor, results: List[VulnerabilityRecord]) -> str:
        """Format a scan outcome with its target"""
        return json.dumps({
            'target': asdict(target),
            'vulnerabilities': [JSONFormatter.record_to_dict(r) for r in results],
        }, indent=2)

    @staticmethod
    def save_records(records: List[VulnerabilityRecord], output_path: Optional[str] = None):
        """Save records to a JSON file or stdout"""
        json_output = JSONFormatter.format_records(records)

        if output_path:
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(json_output)
            click.echo(f"Exported -> {output_path}")
        else:
            click.echo(json_output)
