"""Rule mode: one buffer per scan, first duplicate only.

Mirrors how a linter rule behaves inside an editor: each file is checked on
its own and at most one finding is reported for it, anchored at the first
duplicated block. Several files can be checked concurrently because every
scan is independent.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List, Optional, Sequence

from dupguard.detectors.base import DuplicationDetector
from dupguard.duplication.engine import EngineConfig
from dupguard.logging_config import LogContext, get_logger
from dupguard.models import RULE_INVOCATION_ID, DuplicateGroup, Finding, ScanResult, SourceUnit
from dupguard.validation import MAX_PATH_LENGTH

logger = get_logger(__name__)

RULE_MESSAGE = (
    "Found duplicated code ({similarity}% similar) at lines {start_line}-{end_line}. "
    "Consider extracting into a shared utility, hook, or component."
)


class SingleFileDuplicationRule(DuplicationDetector):
    """Checks a single buffer for repeated blocks.

    Example:
        >>> rule = SingleFileDuplicationRule.from_options({"minLines": 10})
        >>> findings = rule.check("src/app.ts", text)
        >>> findings[0].title
        'Found duplicated code (100% similar) at lines 1-10. Consider ...'
    """

    name = "SingleFileDuplicationRule"

    @classmethod
    def from_options(
        cls,
        options: Optional[Dict] = None,
        detector_config: Optional[Dict] = None,
    ) -> "SingleFileDuplicationRule":
        """Build a rule from linter-style options (``minLines``, ``minSimilarity``, ``excludedPaths``)."""
        return cls(EngineConfig.from_options(options), detector_config)

    def group_to_finding(self, group: DuplicateGroup) -> Finding:
        finding = super().group_to_finding(group)
        finding.title = RULE_MESSAGE.format(
            similarity=group.similarity_percent,
            start_line=group.root.start_line,
            end_line=group.root.end_line,
        )
        return finding

    def scan_one(self, source_id: Optional[str], text: str) -> ScanResult:
        """Scan one buffer, keeping only the first group.

        Missing or over-long identifiers yield an empty result without
        scanning; exclusion and size ceilings are applied by the engine.
        """
        if not isinstance(source_id, str) or not source_id or len(source_id) > MAX_PATH_LENGTH:
            logger.debug("Skipping rule check: missing or over-long source identifier")
            return ScanResult()
        if not isinstance(text, str):
            return ScanResult()

        with LogContext(mode="rule", source_id=source_id):
            result = self.engine.scan([SourceUnit(source_id, text)])
        result.groups = result.groups[:1]
        return result

    def check(self, source_id: Optional[str], text: str) -> List[Finding]:
        """Check one buffer.

        Args:
            source_id: File name of the buffer; used for path exclusion
            text: Full buffer content

        Returns:
            A list with at most one finding. Empty for excluded files,
            missing or over-long identifiers and oversized content.
        """
        return self.findings_from_groups(self.scan_one(source_id, text).groups)

    def check_text(self, text: str) -> List[Finding]:
        """Check a buffer that has no file name."""
        return self.check(RULE_INVOCATION_ID, text)

    def scan_many(self, units: Iterable[SourceUnit], max_workers: Optional[int] = None) -> ScanResult:
        """Scan several buffers independently and merge the results.

        Args:
            units: Buffers to check, each scanned on its own
            max_workers: Thread pool size; 1 runs sequentially

        Returns:
            ScanResult holding each buffer's first group in input order and
            the summed stats
        """
        units = list(units)
        merged = ScanResult()
        if not units:
            return merged

        if max_workers == 1 or len(units) == 1:
            per_unit = [self.scan_one(unit.source_id, unit.text) for unit in units]
        else:
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                per_unit = list(executor.map(lambda unit: self.scan_one(unit.source_id, unit.text), units))

        for result in per_unit:
            merged.groups.extend(result.groups)
            merged.stats.add(result.stats)

        logger.info(f"Rule mode checked {len(units)} file(s), {len(merged.groups)} with duplicates")
        return merged

    def check_many(self, units: Iterable[SourceUnit], max_workers: Optional[int] = None) -> List[Finding]:
        """Check several buffers independently.

        Returns:
            Findings concatenated in input order
        """
        return self.findings_from_groups(self.scan_many(units, max_workers).groups)

    def detect(self, sources: Sequence[SourceUnit]) -> List[Finding]:
        return self.check_many(sources)
