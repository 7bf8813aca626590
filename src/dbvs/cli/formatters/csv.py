"""CSV format output formatter"""

import csv
import io
from typing import List, Optional

import click

from ...core.models import VulnerabilityRecord


class CSVFormatter:
    """CSV format output formatter"""

    @staticmethod
    def get_headers() -> List[str]:
        """Get CSV headers"""
        return [
            'id', 'source', 'vendor', 'product', 'version_start', 'version_end',
            'version_number', 'vuln_id', 'vuln_name', 'severity', 'final_score'
        ]

    @staticmethod
    def format_row(record: VulnerabilityRecord) -> List[str]:
        """Format single record as CSV row"""
        return [
            str(record.id) if record.id is not None else '',
            record.source.value,
            record.vendor,
            record.product,
            record.version_start,
            record.version_end,
            record.version_number,
            record.vuln_id,
            record.vuln_name,
            record.severity.value,
            f"{record.final_score:.2f}" if record.final_score is not None else '',
        ]

    @staticmethod
    def format_records(records: List[VulnerabilityRecord]) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(CSVFormatter.get_headers())
        for record in records:
            writer.writerow(CSVFormatter.format_row(record))
        return buffer.getvalue()

    @staticmethod
    def save_records(records: List[VulnerabilityRecord], output_path: Optional[str] = None):
        """Save records to a CSV file or stdout"""
        if output_path:
            with open(output_path, 'w', newline='', encoding='utf-8') as csvfile:
                writer = csv.writer(csvfile)
                writer.writerow(CSVFormatter.get_headers())
                for record in records:
                    writer.writerow(CSVFormatter.format_row(record))
            click.echo(f"Exported -> {output_path}")
        else:
            click.echo(CSVFormatter.format_records(records), nl=False)
