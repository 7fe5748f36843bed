"""Resource ceilings for a single scan.

Every stage asks the governor before doing more work. When a ceiling is
reached the stage stops and keeps what it has; nothing is raised. Each
ceiling is logged once per scan.
"""

from typing import TYPE_CHECKING, Optional, Set

from dupguard.logging_config import get_logger
from dupguard.models import ScanStats, SourceUnit

if TYPE_CHECKING:
    from dupguard.duplication.engine import EngineConfig

logger = get_logger(__name__)


class ResourceGovernor:
    """Counts blocks and comparisons against the configured ceilings.

    Args:
        config: Engine configuration holding the ceilings
        stats: Stats object to update (a fresh one is created if omitted)
    """

    def __init__(self, config: "EngineConfig", stats: Optional[ScanStats] = None):
        self.config = config
        self.stats = stats if stats is not None else ScanStats()
        self._warned: Set[str] = set()

    def _warn_once(self, ceiling: str, message: str) -> None:
        if ceiling not in self._warned:
            self._warned.add(ceiling)
            logger.warning(message, extra={"ceiling": ceiling})

    def admit_source(self, source: SourceUnit) -> bool:
        """Return False for sources larger than ``max_content_bytes``."""
        size = len(source.text.encode("utf-8", errors="replace"))
        if size > self.config.max_content_bytes:
            self.stats.sources_skipped += 1
            self.stats.skipped_sources.append(source.source_id)
            logger.warning(
                f"Skipping {source.source_id}: {size} bytes exceeds the "
                f"{self.config.max_content_bytes} byte ceiling"
            )
            return False
        return True

    @property
    def blocks_exhausted(self) -> bool:
        return self.stats.blocks_extracted >= self.config.max_blocks

    def mark_block_limit(self) -> None:
        self.stats.block_limit_hit = True
        self._warn_once(
            "max_blocks",
            f"Block ceiling of {self.config.max_blocks} reached; remaining blocks are not compared",
        )

    def admit_block(self) -> bool:
        """Count one more block; False once ``max_blocks`` have been admitted."""
        if self.blocks_exhausted:
            self.mark_block_limit()
            return False
        self.stats.blocks_extracted += 1
        return True

    @property
    def comparisons_exhausted(self) -> bool:
        return self.stats.comparisons >= self.config.max_comparisons

    def charge_comparison(self) -> bool:
        """Count one more comparison; False once ``max_comparisons`` is reached."""
        if self.comparisons_exhausted:
            self.stats.comparison_limit_hit = True
            self._warn_once(
                "max_comparisons",
                f"Comparison ceiling of {self.config.max_comparisons} reached; "
                "returning the duplicates found so far",
            )
            return False
        self.stats.comparisons += 1
        return True
