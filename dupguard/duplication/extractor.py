"""Block extraction.

Slides a window of exactly ``min_block_lines`` lines over a buffer with a
stride of half the window, so consecutive windows overlap by 50%. Windows
dominated by blank or comment lines are dropped before they ever reach
comparison.
"""

from typing import TYPE_CHECKING, Iterator, List

from dupguard.duplication.normalizer import normalize
from dupguard.models import CodeBlock, SourceUnit

if TYPE_CHECKING:
    from dupguard.duplication.engine import EngineConfig

COMMENT_PREFIXES = ("//", "/*", "*", "*/")
SUBSTANTIVE_RATIO = 0.7


def is_substantive_line(line: str) -> bool:
    """A line counts when it has content and does not open with a comment marker."""
    trimmed = line.strip()
    return bool(trimmed) and not trimmed.startswith(COMMENT_PREFIXES)


def window_stride(min_block_lines: int) -> int:
    return max(1, min_block_lines // 2)


def has_enough_substance(window: List[str], min_block_lines: int) -> bool:
    substantive = sum(1 for line in window if is_substantive_line(line))
    return substantive >= min_block_lines * SUBSTANTIVE_RATIO


def extract_blocks(source_unit: SourceUnit, config: "EngineConfig") -> Iterator[CodeBlock]:
    """Yield candidate blocks from a source unit in line order.

    Only full-length windows are produced; a buffer shorter than the window
    yields nothing.

    Args:
        source_unit: Buffer to slice
        config: Supplies ``min_block_lines`` and the normalization ceilings

    Yields:
        CodeBlock with its normalized content already computed
    """
    lines = source_unit.text.split("\n")
    size = config.min_block_lines
    stride = window_stride(size)

    for start in range(0, len(lines) - size + 1, stride):
        window = lines[start:start + size]
        if not has_enough_substance(window, size):
            continue

        raw = "\n".join(window)
        block = CodeBlock(
            source_id=source_unit.source_id,
            start_line=start + 1,
            end_line=start + size,
            raw_content=raw,
            normalized_content=normalize(raw, config),
        )
        assert 1 <= block.start_line <= block.end_line <= len(lines), (
            f"block {block.key} lies outside {len(lines)} lines"
        )
        yield block
