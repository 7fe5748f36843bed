"""Base detector interface.

A detector is a thin adapter around the duplication engine: it decides which
sources go into a scan, which groups are reported, and how a group is
rendered as a Finding with a severity.
"""

from abc import ABC, abstractmethod
import hashlib
from typing import Dict, List, Optional, Sequence

from dupguard.duplication.engine import DuplicationEngine, EngineConfig
from dupguard.logging_config import get_logger
from dupguard.models import SEVERITY_ORDER, DuplicateGroup, Finding, Severity, SourceUnit

logger = get_logger(__name__)

SUGGESTED_FIX = (
    "Consider extracting the duplicated code into:\n"
    "- A shared utility function\n"
    "- A custom hook\n"
    "- A shared component\n"
    "- A shared service method if it's API-related"
)


def parse_severity(severity_str: Optional[str], default: Severity = Severity.MEDIUM) -> Severity:
    """Parse a severity name; unknown names fall back to default.

    Accepts the linter-style aliases ``error`` (high) and ``warn``/``warning``
    (medium) as well as the Severity values.
    """
    if not severity_str:
        return default

    severity_map = {
        "critical": Severity.CRITICAL,
        "high": Severity.HIGH,
        "error": Severity.HIGH,
        "medium": Severity.MEDIUM,
        "warn": Severity.MEDIUM,
        "warning": Severity.MEDIUM,
        "low": Severity.LOW,
        "info": Severity.INFO,
    }
    return severity_map.get(str(severity_str).lower(), default)


class DuplicationDetector(ABC):
    """Abstract base class for duplication detectors.

    Args:
        config: Engine settings (defaults when omitted)
        detector_config: Optional dict. May include:
            - severity: Severity attached to findings (default: "medium")
            - min_severity: Findings below this are dropped (default: "info")
    """

    name = "DuplicationDetector"

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        detector_config: Optional[Dict] = None,
    ):
        self.config = config or EngineConfig()
        self.detector_config = detector_config or {}
        self.severity = parse_severity(self.detector_config.get("severity"))
        self.min_severity = parse_severity(self.detector_config.get("min_severity"), Severity.INFO)
        self.engine = DuplicationEngine(self.config)

    @abstractmethod
    def detect(self, sources: Sequence[SourceUnit]) -> List[Finding]:
        """Scan sources and return findings.

        Args:
            sources: Buffers to check

        Returns:
            Findings to report (possibly empty)
        """
        pass

    def _passes_filters(self, finding: Finding) -> bool:
        return SEVERITY_ORDER[finding.severity] <= SEVERITY_ORDER[self.min_severity]

    def _finding_id(self, group: DuplicateGroup) -> str:
        root = group.root
        digest = hashlib.sha1(
            "|".join(f"{b.source_id}:{b.start_line}" for b in group.members).encode("utf-8")
        ).hexdigest()[:12]
        return f"duplicate_block_{root.start_line}_{digest}"

    def _describe(self, group: DuplicateGroup) -> str:
        lines = []
        if group.is_same_file:
            lines.append(f"Same file: {group.root.source_id}")
            lines.append(f"Found {len(group.members)} similar blocks in the same file")
            for index, block in enumerate(group.members, start=1):
                lines.append(f"Block {index}: Lines {block.start_line}-{block.end_line}")
        else:
            lines.append(f"Multiple files ({group.file_count} files):")
            for source_id, blocks in group.members_by_source().items():
                ranges = ", ".join(f"{b.start_line}-{b.end_line}" for b in blocks)
                lines.append(f"{source_id}: Lines {ranges}")
        return "\n".join(lines)

    def group_to_finding(self, group: DuplicateGroup) -> Finding:
        """Render a duplicate group as a Finding."""
        root = group.root
        similarity = group.similarity_percent
        return Finding(
            id=self._finding_id(group),
            detector=self.name,
            severity=self.severity,
            title=(
                f"Duplicated code ({similarity}% similar) at lines "
                f"{root.start_line}-{root.end_line}"
            ),
            description=self._describe(group),
            affected_files=group.source_ids,
            line_start=root.start_line,
            line_end=root.end_line,
            suggested_fix=SUGGESTED_FIX,
            context={
                "similarity": similarity,
                "is_same_file": group.is_same_file,
                "file_count": group.file_count,
                "blocks": [block.to_dict() for block in group.members],
            },
        )

    def findings_from_groups(self, groups: Sequence[DuplicateGroup]) -> List[Finding]:
        findings = [self.group_to_finding(group) for group in groups]
        return [finding for finding in findings if self._passes_filters(finding)]
