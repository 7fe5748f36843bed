"""Data models for dupguard.

This module defines the core data structures used throughout dupguard:
- Inputs: SourceUnit, the (identifier, text) pair handed to the engine
- Engine values: CodeBlock, DuplicateGroup, ScanStats, ScanResult
- Adapter output: Severity and Finding, used by the rule/batch detectors,
  reporters and the pre-commit hook

Engine values are immutable dataclasses scoped to a single scan.
"""

import math
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

RULE_INVOCATION_ID = "<rule-invocation>"


class Severity(str, Enum):
    """Finding severity levels ordered by impact.

    The engine itself has no notion of severity; adapters attach one so
    callers can decide whether a duplicate warns or blocks.

    Example:
        >>> Severity.MEDIUM.value
        'medium'
    """
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


SEVERITY_ORDER = {
    Severity.CRITICAL: 0,
    Severity.HIGH: 1,
    Severity.MEDIUM: 2,
    Severity.LOW: 3,
    Severity.INFO: 4,
}


@dataclass(frozen=True)
class SourceUnit:
    """A buffer to scan.

    Attributes:
        source_id: File path or a synthetic tag such as ``<rule-invocation>``
        text: Full buffer content
    """
    source_id: str
    text: str

    @property
    def line_count(self) -> int:
        return len(self.text.split("\n"))


@dataclass(frozen=True)
class CodeBlock:
    """A fixed-length window of source lines, the unit of comparison.

    Attributes:
        source_id: Identifier of the SourceUnit the block came from
        start_line: First line (1-based, inclusive)
        end_line: Last line (1-based, inclusive)
        raw_content: The window's lines joined with newlines
        normalized_content: Normalized form, computed once at extraction

    Example:
        >>> block = CodeBlock("a.ts", 1, 10, raw, normalize(raw, config))
        >>> block.line_count
        10
    """
    source_id: str
    start_line: int
    end_line: int
    raw_content: str
    normalized_content: str

    @property
    def key(self) -> Tuple[str, int]:
        """Identity of the block within a scan."""
        return (self.source_id, self.start_line)

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1

    def preview(self, max_lines: int = 5, max_width: int = 80) -> List[Tuple[int, str]]:
        """Return the first raw lines with their line numbers, truncated.

        Args:
            max_lines: Maximum number of lines to return
            max_width: Lines longer than this are cut and suffixed with "..."
        """
        preview = []
        for offset, line in enumerate(self.raw_content.split("\n")[:max_lines]):
            text = line[:max_width] + ("..." if len(line) > max_width else "")
            preview.append((self.start_line + offset, text))
        return preview

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_id": self.source_id,
            "start_line": self.start_line,
            "end_line": self.end_line,
        }


@dataclass(frozen=True)
class DuplicateGroup:
    """A cluster of two or more blocks judged similar above threshold.

    Attributes:
        members: Blocks in the group, the root (first-seen) block first
        is_same_file: True when every member shares one source_id
        file_count: Number of distinct source_ids among members
        similarity: Lowest score (0-100) at which a member joined the root
    """
    members: Tuple[CodeBlock, ...]
    is_same_file: bool
    file_count: int
    similarity: float = 100.0

    def __post_init__(self) -> None:
        assert len(self.members) >= 2, "a duplicate group needs at least two members"

    @classmethod
    def from_members(cls, members: List[CodeBlock], similarity: float = 100.0) -> "DuplicateGroup":
        """Build a group, deriving the file statistics from the members."""
        file_count = len({block.source_id for block in members})
        return cls(
            members=tuple(members),
            is_same_file=file_count == 1,
            file_count=file_count,
            similarity=similarity,
        )

    @property
    def root(self) -> CodeBlock:
        return self.members[0]

    @property
    def similarity_percent(self) -> int:
        """Similarity as a whole percent, halves rounded up (62.5 reads 63)."""
        return math.floor(self.similarity + 0.5)

    @property
    def source_ids(self) -> List[str]:
        """Distinct source ids in first-seen order."""
        return list(OrderedDict.fromkeys(block.source_id for block in self.members))

    def members_by_source(self) -> "OrderedDict[str, List[CodeBlock]]":
        grouped: "OrderedDict[str, List[CodeBlock]]" = OrderedDict()
        for block in self.members:
            grouped.setdefault(block.source_id, []).append(block)
        return grouped

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_same_file": self.is_same_file,
            "file_count": self.file_count,
            "similarity": round(self.similarity, 2),
            "blocks": [block.to_dict() for block in self.members],
        }


@dataclass
class ScanStats:
    """Counters describing how much work a scan did and where it degraded.

    A hit ceiling is reported here rather than raised: the scan is advisory
    and a partial result is still a valid result.
    """
    sources_scanned: int = 0
    sources_skipped: int = 0
    blocks_extracted: int = 0
    comparisons: int = 0
    block_limit_hit: bool = False
    comparison_limit_hit: bool = False
    skipped_sources: List[str] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return self.block_limit_hit or self.comparison_limit_hit

    def add(self, other: "ScanStats") -> None:
        """Accumulate another scan's counters into this one."""
        self.sources_scanned += other.sources_scanned
        self.sources_skipped += other.sources_skipped
        self.blocks_extracted += other.blocks_extracted
        self.comparisons += other.comparisons
        self.block_limit_hit = self.block_limit_hit or other.block_limit_hit
        self.comparison_limit_hit = self.comparison_limit_hit or other.comparison_limit_hit
        self.skipped_sources.extend(other.skipped_sources)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sources_scanned": self.sources_scanned,
            "sources_skipped": self.sources_skipped,
            "blocks_extracted": self.blocks_extracted,
            "comparisons": self.comparisons,
            "block_limit_hit": self.block_limit_hit,
            "comparison_limit_hit": self.comparison_limit_hit,
            "skipped_sources": list(self.skipped_sources),
        }


@dataclass
class ScanResult:
    """Output of one engine scan: groups in discovery order plus stats."""
    groups: List[DuplicateGroup] = field(default_factory=list)
    stats: ScanStats = field(default_factory=ScanStats)

    @property
    def has_duplicates(self) -> bool:
        return bool(self.groups)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "groups": [group.to_dict() for group in self.groups],
            "stats": self.stats.to_dict(),
        }


@dataclass
class Finding:
    """A duplicate group rendered for a caller that thinks in issues.

    Attributes:
        id: Stable identifier derived from the group's root block
        detector: Name of the adapter that produced the finding
        severity: Severity chosen by the adapter's configuration
        title: Short title
        description: Locations of every member
        affected_files: Distinct files involved
        line_start: First line of the root block
        line_end: Last line of the root block
        suggested_fix: Refactoring hint
        context: Machine-readable details (group dict, similarity)
        created_at: When the finding was produced

    Example:
        >>> finding.title
        'Duplicated code (100% similar) at lines 1-10'
    """
    id: str
    detector: str
    severity: Severity
    title: str
    description: str
    affected_files: List[str]
    line_start: Optional[int] = None
    line_end: Optional[int] = None
    suggested_fix: Optional[str] = None
    context: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "detector": self.detector,
            "severity": self.severity.value,
            "title": self.title,
            "description": self.description,
            "affected_files": list(self.affected_files),
            "line_start": self.line_start,
            "line_end": self.line_end,
            "suggested_fix": self.suggested_fix,
            "context": self.context,
            "created_at": self.created_at.isoformat(),
        }
