"""
Serialization of results, summaries and report documents
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .. import __version__
from .baseline import BaselineComparison
from .engine import ScopeScan
from .framework import CheckResult
from .summary import ScanSummary


class OutputEngine:
    """Handle output formatting and result persistence"""

    @staticmethod
    def results_to_records(results: List[CheckResult],
                           scope: Optional[str] = None) -> List[Dict[str, Any]]:
        records = [result.to_dict() for result in results]
        if scope is not None:
            for record in records:
                record["scope"] = scope
        return records

    @classmethod
    def scans_to_records(cls, scans: Mapping[str, ScopeScan]) -> List[Dict[str, Any]]:
        """Flatten per-scope results into records tagged with their scope"""
        records = []
        for scope, scan in scans.items():
            records.extend(cls.results_to_records(scan.results, scope))
        return records

    @classmethod
    def format_json(cls, scans: Mapping[str, ScopeScan], summary: ScanSummary,
                    comparison: Optional[BaselineComparison] = None,
                    metadata: Dict[str, Any] = None) -> Dict[str, Any]:
        """Assemble the full report document"""

        if metadata is None:
            metadata = {}

        scopes = []
        for scope, scan in scans.items():
            scopes.append({
                "scope": scope,
                "status": "completed" if scan.succeeded else "failed",
                "error": scan.error,
                "result_count": len(scan.results),
            })

        report = {
            "metadata": {
                "tool": "well-architected-scanner",
                "version": __version__,
                "generated_at": datetime.now(timezone.utc).isoformat(),
                **metadata
            },
            "summary": summary.to_dict(),
            "scopes": scopes,
            "results": cls.scans_to_records(scans),
        }
        if comparison is not None:
            report["baseline_comparison"] = comparison.to_dict()

        return report

    @staticmethod
    def save_json(document: Any, output_file: str):
        """Save a JSON document to file"""
        try:
            output_path = Path(output_file)
            output_path.parent.mkdir(parents=True, exist_ok=True)

            with open(output_path, 'w', encoding='utf-8') as f:
                json.dump(document, f, indent=2)

            logging.info(f"Report saved to: {output_path}")

        except Exception as e:
            logging.error(f"Error saving report: {str(e)}")
            raise

    @classmethod
    def save_results(cls, results: List[CheckResult], output_file: str,
                     scope: Optional[str] = None):
        cls.save_json(cls.results_to_records(results, scope), output_file)

    @classmethod
    def save_scan_results(cls, scans: Mapping[str, ScopeScan], output_file: str):
        cls.save_json(cls.scans_to_records(scans), output_file)

    @classmethod
    def save_summary(cls, summary: ScanSummary, output_file: str):
        cls.save_json(summary.to_dict(), output_file)

    @staticmethod
    def load_results(input_file: str) -> List[CheckResult]:
        """Load a result set saved by ``save_results``"""
        with open(input_file, encoding='utf-8') as f:
            records = json.load(f)
        return [CheckResult.from_dict(record) for record in records]
