"""Table format output formatter"""

from typing import List

from ...core.models import TargetDescriptor, VulnerabilityRecord


class TableFormatter:
    """Plain-text listing of scan results"""

    @staticmethod
    def _version_constraint(record: VulnerabilityRecord) -> str:
        if record.version_number:
            return f"= {record.version_number}"
        if not record.version_start and not record.version_end:
            return "all versions"
        return f"{record.version_start or '*'} .. {record.version_end or '*'}"

    @staticmethod
    def format_record(record: VulnerabilityRecord) -> str:
        lines = []

        header = f"[{record.vuln_id}] {record.severity.value}"
        if record.description:
            desc = record.description[:80] + "..." if len(record.description) > 80 else record.description
            header += f" - {desc}"
        lines.append(header)

        details = [f"Source: {record.source.value}",
                   f"Affected: {TableFormatter._version_constraint(record)}"]
        if record.final_score is not None:
            details.append(f"Final Score: {record.final_score:.2f}")
        else:
            details.append("Final Score: N/A")
        lines.append("  " + " | ".join(details))

        scores = []
        if record.cvss_score is not None:
            scores.append(f"CVSS {record.cvss_score}")
        if record.cnvd_score is not None:
            scores.append(f"CNVD {record.cnvd_score}")
        if record.aliyun_score is not None:
            scores.append(f"Aliyun {record.aliyun_score}")
        if scores:
            lines.append("  Scores: " + ", ".join(scores))

        if record.patch_info:
            lines.append(f"  Patch: {record.patch_info}")

        return "\n".join(lines)

    @staticmethod
    def format_results(target: TargetDescriptor, results: List[VulnerabilityRecord]) -> str:
        """Scan or match results with a header line for the target"""
        lines = []
        lines.append("VULNERABILITY SCAN RESULTS")
        lines.append("=" * 50)
        lines.append(f"Target: {target.vendor} {target.product} {target.version}")
        lines.append("")

        if not results:
            lines.append("No known vulnerabilities matched")
            return "\n".join(lines)

        for record in results:
            lines.append(TableFormatter.format_record(record))
            lines.append("")

        counts = {}
        for record in results:
            counts[record.severity.value] = counts.get(record.severity.value, 0) + 1
        summary = ", ".join(f"{k}: {v}" for k, v in counts.items())
        lines.append(f"Total: {len(results)} ({summary})")

        return "\n".join(lines)
