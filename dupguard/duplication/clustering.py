"""Duplicate group construction.

Walks each bucket in extraction order. The first unconsumed block becomes a
group root and absorbs every later unconsumed block that scores at or above
the threshold. Absorbed blocks are consumed and can never root a group of
their own, so a block is reported at most once per scan.
"""

from typing import TYPE_CHECKING, Dict, List, Optional, Set, Tuple

from dupguard.duplication.bucketer import candidate_buckets
from dupguard.duplication.governor import ResourceGovernor
from dupguard.duplication.similarity import score
from dupguard.logging_config import get_logger
from dupguard.models import CodeBlock, DuplicateGroup

if TYPE_CHECKING:
    from dupguard.duplication.engine import EngineConfig

logger = get_logger(__name__)


def is_overlapping(block_a: CodeBlock, block_b: CodeBlock, min_block_lines: int) -> bool:
    """Blocks from the same source starting fewer than min_block_lines apart are one occurrence."""
    return (
        block_a.source_id == block_b.source_id
        and abs(block_a.start_line - block_b.start_line) < min_block_lines
    )


def cluster_blocks(
    buckets: Dict[str, List[CodeBlock]],
    config: "EngineConfig",
    governor: Optional[ResourceGovernor] = None,
) -> List[DuplicateGroup]:
    """Merge pairwise matches inside each bucket into duplicate groups.

    Args:
        buckets: Fingerprint buckets from ``bucket_blocks``
        config: Supplies ``min_block_lines`` and ``min_similarity_percent``
        governor: Comparison budget; a fresh one is created if omitted

    Returns:
        Groups in discovery order. When the comparison ceiling is reached the
        groups found so far are returned.
    """
    governor = governor or ResourceGovernor(config)
    consumed: Set[Tuple[str, int]] = set()
    groups: List[DuplicateGroup] = []

    for _, members in candidate_buckets(buckets):
        for i, root in enumerate(members):
            if root.key in consumed:
                continue

            similar = [root]
            lowest = 100.0
            budget_left = True

            for candidate in members[i + 1:]:
                if candidate.key in consumed:
                    continue
                if is_overlapping(root, candidate, config.min_block_lines):
                    continue
                if not governor.charge_comparison():
                    budget_left = False
                    break

                similarity = score(root, candidate)
                if similarity >= config.min_similarity_percent:
                    similar.append(candidate)
                    consumed.add(candidate.key)
                    lowest = min(lowest, similarity)

            if len(similar) > 1:
                group = DuplicateGroup.from_members(similar, similarity=lowest)
                groups.append(group)
                consumed.add(root.key)
                logger.debug(
                    f"Duplicate group rooted at {root.source_id}:{root.start_line} "
                    f"with {len(similar)} blocks across {group.file_count} file(s)"
                )

            if not budget_left:
                return groups

    return groups
