"""Line-aligned similarity between two normalized blocks."""

from dupguard.models import CodeBlock


def calculate_similarity(normalized_a: str, normalized_b: str) -> float:
    """Percentage of line positions at which two normalized texts agree.

    Identical texts score 100. Otherwise the count of indices ``i`` where
    ``lines_a[i] == lines_b[i]`` is divided by the longer line count. Lines are
    compared positionally only, so a block shifted by one line scores low.

    Two empty texts score 0.

    Args:
        normalized_a: Normalized content of the first block
        normalized_b: Normalized content of the second block

    Returns:
        Score in [0, 100]
    """
    if not normalized_a and not normalized_b:
        return 0.0
    if normalized_a == normalized_b:
        return 100.0

    lines_a = normalized_a.split("\n") if normalized_a else []
    lines_b = normalized_b.split("\n") if normalized_b else []

    max_len = max(len(lines_a), len(lines_b))
    matches = sum(1 for line_a, line_b in zip(lines_a, lines_b) if line_a == line_b)
    return matches / max_len * 100


def score(block_a: CodeBlock, block_b: CodeBlock) -> float:
    """Similarity score of two blocks' normalized contents."""
    return calculate_similarity(block_a.normalized_content, block_b.normalized_content)
