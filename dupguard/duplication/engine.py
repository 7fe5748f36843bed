"""Duplication engine: configuration and the scan entry point.

One scan pools candidate blocks from every admitted source into a single
bucket/cluster pass:

    sources -> extract_blocks -> bucket_blocks -> cluster_blocks -> groups

Rule mode passes one source; batch mode passes all of them. The engine is
synchronous, holds no state between scans and never raises for oversized
input or bad options.
"""

import math
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from dupguard.duplication.bucketer import bucket_blocks
from dupguard.duplication.clustering import cluster_blocks
from dupguard.duplication.extractor import extract_blocks
from dupguard.duplication.governor import ResourceGovernor
from dupguard.duplication.normalizer import (
    DEFAULT_MAX_CONTENT_BYTES_FOR_NORMALIZATION,
    DEFAULT_MAX_IDENTIFIER_LENGTH,
    DEFAULT_MAX_IDENTIFIERS_TRACKED,
)
from dupguard.logging_config import LogContext, get_logger
from dupguard.models import CodeBlock, DuplicateGroup, ScanResult, ScanStats, SourceUnit
from dupguard.validation import should_exclude_file, validate_excluded_paths

logger = get_logger(__name__)

DEFAULT_MIN_BLOCK_LINES = 10
DEFAULT_MIN_SIMILARITY_PERCENT = 80.0
MAX_MIN_BLOCK_LINES = 1000
DEFAULT_MAX_BLOCKS = 1000
DEFAULT_MAX_COMPARISONS = 10000
DEFAULT_MAX_CONTENT_BYTES = 10 * 1024 * 1024

# Accepted spellings for each option: rule-style camelCase and Python names
_OPTION_ALIASES = {
    "min_block_lines": ("min_block_lines", "minBlockLines", "minLines", "min_lines"),
    "min_similarity_percent": (
        "min_similarity_percent", "minSimilarityPercent", "minSimilarity", "min_similarity",
    ),
    "excluded_path_patterns": (
        "excluded_path_patterns", "excludedPathPatterns", "excludedPaths", "excluded_paths",
    ),
    "max_blocks": ("max_blocks", "maxBlocks"),
    "max_comparisons": ("max_comparisons", "maxComparisons"),
}


def coerce_number(value: Any) -> Optional[float]:
    """Return value as a finite float, or None when it is not numeric."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def clamp_min_block_lines(value: Any) -> int:
    """Integer in (0, 1000], floored; anything else falls back to the default."""
    number = coerce_number(value)
    if number is None or number <= 0 or number > MAX_MIN_BLOCK_LINES:
        if value is not None:
            logger.warning(f"Invalid minimum block lines {value!r}, using {DEFAULT_MIN_BLOCK_LINES}")
        return DEFAULT_MIN_BLOCK_LINES
    return max(1, math.floor(number))


def clamp_min_similarity(value: Any) -> float:
    """Number in [0, 100]; anything else falls back to the default."""
    number = coerce_number(value)
    if number is None or number < 0 or number > 100:
        if value is not None:
            logger.warning(
                f"Invalid minimum similarity {value!r}, using {DEFAULT_MIN_SIMILARITY_PERCENT:g}"
            )
        return DEFAULT_MIN_SIMILARITY_PERCENT
    return number


def _clamp_positive_int(value: Any, default: int, name: str) -> int:
    number = coerce_number(value)
    if number is None or number < 1:
        if value is not None:
            logger.warning(f"Invalid {name} {value!r}, using {default}")
        return default
    return int(number)


@dataclass(frozen=True)
class EngineConfig:
    """Resolved, immutable settings for one scan.

    Attributes:
        min_block_lines: Window length in lines (1-1000)
        min_similarity_percent: Threshold for grouping (0-100)
        max_blocks: Ceiling on blocks considered per scan
        max_comparisons: Ceiling on pairwise comparisons per scan
        max_content_bytes_for_normalization: Larger blocks keep their identifiers
        max_identifiers_tracked: Ceiling on distinct placeholders per block
        max_identifier_length: Longer identifiers are left as written
        max_content_bytes: Larger sources are skipped entirely
        excluded_path_patterns: Extra exclusion patterns (validated)
    """
    min_block_lines: int = DEFAULT_MIN_BLOCK_LINES
    min_similarity_percent: float = DEFAULT_MIN_SIMILARITY_PERCENT
    max_blocks: int = DEFAULT_MAX_BLOCKS
    max_comparisons: int = DEFAULT_MAX_COMPARISONS
    max_content_bytes_for_normalization: int = DEFAULT_MAX_CONTENT_BYTES_FOR_NORMALIZATION
    max_identifiers_tracked: int = DEFAULT_MAX_IDENTIFIERS_TRACKED
    max_identifier_length: int = DEFAULT_MAX_IDENTIFIER_LENGTH
    max_content_bytes: int = DEFAULT_MAX_CONTENT_BYTES
    excluded_path_patterns: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        # Frozen, so out-of-range values are replaced in place
        object.__setattr__(self, "min_block_lines", clamp_min_block_lines(self.min_block_lines))
        object.__setattr__(
            self, "min_similarity_percent", clamp_min_similarity(self.min_similarity_percent)
        )
        object.__setattr__(
            self, "max_blocks", _clamp_positive_int(self.max_blocks, DEFAULT_MAX_BLOCKS, "max_blocks")
        )
        object.__setattr__(
            self,
            "max_comparisons",
            _clamp_positive_int(self.max_comparisons, DEFAULT_MAX_COMPARISONS, "max_comparisons"),
        )

    @classmethod
    def from_options(cls, options: Optional[Mapping[str, Any]] = None, **overrides: Any) -> "EngineConfig":
        """Build a config from a loosely typed option mapping.

        Invalid values never raise: they are logged and replaced by the
        documented defaults.

        Args:
            options: Flat mapping such as rule options
                (``{"minLines": 12, "minSimilarity": 90, "excludedPaths": [...]}``)
            **overrides: Same keys, applied after options

        Returns:
            Clamped EngineConfig
        """
        merged = dict(options or {})
        merged.update(overrides)

        def pick(name: str) -> Any:
            for alias in _OPTION_ALIASES[name]:
                if alias in merged:
                    return merged[alias]
            return None

        excluded = pick("excluded_path_patterns")
        return cls(
            min_block_lines=clamp_min_block_lines(pick("min_block_lines")),
            min_similarity_percent=clamp_min_similarity(pick("min_similarity_percent")),
            max_blocks=_clamp_positive_int(pick("max_blocks"), DEFAULT_MAX_BLOCKS, "max_blocks"),
            max_comparisons=_clamp_positive_int(
                pick("max_comparisons"), DEFAULT_MAX_COMPARISONS, "max_comparisons"
            ),
            excluded_path_patterns=tuple(validate_excluded_paths(excluded)) if excluded is not None else (),
        )

    def with_overrides(self, **changes: Any) -> "EngineConfig":
        """Copy with some fields replaced; out-of-range values fall back to the defaults."""
        return replace(self, **changes)


class DuplicationEngine:
    """Finds duplicate blocks across a set of sources.

    Example:
        >>> engine = DuplicationEngine(EngineConfig(min_block_lines=10))
        >>> result = engine.scan([SourceUnit("a.ts", text_a), SourceUnit("b.ts", text_b)])
        >>> [group.file_count for group in result.groups]
        [2]
    """

    def __init__(self, config: Optional[EngineConfig] = None, apply_default_exclusions: bool = True):
        """Initialize the engine.

        Args:
            config: Scan settings (defaults when omitted)
            apply_default_exclusions: Also skip node_modules/, dist/, build/...
        """
        self.config = config or EngineConfig()
        self.apply_default_exclusions = apply_default_exclusions
        # Patterns are re-validated even when the config was built by hand
        self.excluded_path_patterns = validate_excluded_paths(list(self.config.excluded_path_patterns))

    def is_excluded(self, source: SourceUnit) -> bool:
        return should_exclude_file(
            source.source_id,
            self.excluded_path_patterns,
            include_defaults=self.apply_default_exclusions,
        )

    def collect_blocks(self, sources: Iterable[SourceUnit], governor: ResourceGovernor) -> List[CodeBlock]:
        """Extract blocks from every admitted source, stopping at ``max_blocks``."""
        blocks: List[CodeBlock] = []
        stats = governor.stats

        for source in sources:
            if governor.blocks_exhausted:
                governor.mark_block_limit()
                break
            if self.is_excluded(source):
                stats.sources_skipped += 1
                stats.skipped_sources.append(source.source_id)
                logger.debug(f"Excluded by path pattern: {source.source_id}")
                continue
            if not governor.admit_source(source):
                continue

            stats.sources_scanned += 1
            for block in extract_blocks(source, self.config):
                if not governor.admit_block():
                    break
                blocks.append(block)

        return blocks

    def scan(self, sources: Sequence[SourceUnit]) -> ScanResult:
        """Run one scan over sources.

        Args:
            sources: Buffers to compare; blocks from all of them share one
                bucket/cluster pass

        Returns:
            ScanResult whose ``groups`` list is empty when nothing was found
        """
        stats = ScanStats()
        governor = ResourceGovernor(self.config, stats)

        with LogContext(operation="scan", source_count=len(sources)):
            blocks = self.collect_blocks(sources, governor)
            buckets = bucket_blocks(blocks)
            groups = cluster_blocks(buckets, self.config, governor)

            logger.debug(
                f"Scanned {stats.sources_scanned} source(s): {stats.blocks_extracted} blocks, "
                f"{len(buckets)} buckets, {stats.comparisons} comparisons, {len(groups)} group(s)"
            )

        return ScanResult(groups=groups, stats=stats)


def find_duplicates(
    sources: Sequence[SourceUnit],
    config: Optional[EngineConfig] = None,
) -> List[DuplicateGroup]:
    """Functional shortcut for ``DuplicationEngine(config).scan(sources).groups``."""
    return DuplicationEngine(config).scan(sources).groups
