"""Batch mode: every buffer pooled into one scan.

Used by the pre-commit hook and the CLI. Blocks from all files share one
bucket/cluster pass, so cross-file duplicates are found alongside same-file
ones, and every group is reported.
"""

from typing import List, Sequence

from dupguard.detectors.base import DuplicationDetector
from dupguard.logging_config import LogContext, get_logger
from dupguard.models import Finding, ScanResult, SourceUnit

logger = get_logger(__name__)


class CrossFileDuplicationDetector(DuplicationDetector):
    """Finds duplicated blocks within and across files."""

    name = "CrossFileDuplicationDetector"

    def scan(self, sources: Sequence[SourceUnit]) -> ScanResult:
        """Run one pooled scan and return the raw result."""
        with LogContext(mode="batch"):
            result = self.engine.scan(list(sources))

        logger.info(
            f"Batch mode scanned {result.stats.sources_scanned} file(s), "
            f"found {len(result.groups)} duplicate group(s)"
        )
        if result.stats.degraded:
            logger.warning("Scan hit a resource ceiling; results may be incomplete")
        return result

    def detect(self, sources: Sequence[SourceUnit]) -> List[Finding]:
        return self.findings_from_groups(self.scan(sources).groups)
