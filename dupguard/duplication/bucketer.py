"""Candidate bucketing.

Blocks are grouped by the first characters of their normalized content and
only blocks sharing a bucket are ever compared. Two similar blocks whose
normalized prefixes differ are never compared and will be missed.
"""

from typing import Dict, Iterable, Iterator, List, Tuple

from dupguard.models import CodeBlock

FINGERPRINT_LENGTH = 50


def fingerprint(block: CodeBlock, length: int = FINGERPRINT_LENGTH) -> str:
    """Bucketing key: a prefix of the normalized content, not a hash."""
    return block.normalized_content[:length]


def bucket_blocks(blocks: Iterable[CodeBlock], length: int = FINGERPRINT_LENGTH) -> Dict[str, List[CodeBlock]]:
    """Group blocks by fingerprint, keeping extraction order.

    Args:
        blocks: Blocks in extraction order
        length: Fingerprint prefix length

    Returns:
        Mapping of fingerprint to the blocks that share it
    """
    buckets: Dict[str, List[CodeBlock]] = {}
    for block in blocks:
        buckets.setdefault(fingerprint(block, length), []).append(block)
    return buckets


def candidate_buckets(buckets: Dict[str, List[CodeBlock]]) -> Iterator[Tuple[str, List[CodeBlock]]]:
    """Yield only the buckets that hold at least two blocks."""
    for key, members in buckets.items():
        if len(members) >= 2:
            yield key, members
