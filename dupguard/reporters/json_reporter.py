"""JSON reporter: the scan result as ``{"groups": [...], "stats": {...}}``."""

import json

from dupguard.models import ScanResult
from dupguard.reporters.base_reporter import BaseReporter


class JSONReporter(BaseReporter):
    """Machine-readable report for CI scripts."""

    def __init__(self, indent: int = 2):
        self.indent = indent

    def generate_string(self, result: ScanResult) -> str:
        return json.dumps(result.to_dict(), indent=self.indent, ensure_ascii=False)
