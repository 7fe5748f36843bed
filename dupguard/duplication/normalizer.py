"""Block normalization.

Turns a raw block of source lines into a form where formatting, comments
and naming no longer matter:

1. Cut each line at the first ``//`` and then the first ``/*``
2. Trim and collapse whitespace, dropping lines left empty
3. Rejoin the surviving lines with newlines
4. Replace each distinct non-keyword identifier with ``__VAR<n>__`` in
   first-seen order

So ``calculateTotal(items)`` and ``calculateSum(products)`` normalize to the
same text.

Comment stripping does not track string literals, so a ``//`` inside a
string cuts the line there. This is a known limitation.
"""

import re
from typing import TYPE_CHECKING, Dict, Optional

from dupguard.logging_config import get_logger

if TYPE_CHECKING:
    from dupguard.duplication.engine import EngineConfig

logger = get_logger(__name__)

IDENTIFIER_PATTERN = re.compile(r"\b([A-Za-z_$][A-Za-z0-9_$]*)\b", re.ASCII)
WHITESPACE_PATTERN = re.compile(r"\s+")

LINE_COMMENT = "//"
BLOCK_COMMENT_START = "/*"

RESERVED_KEYWORDS = frozenset({
    "if", "else", "for", "while", "do", "switch", "case", "break", "continue",
    "return", "function", "const", "let", "var", "class", "extends", "implements",
    "import", "export", "from", "default", "async", "await", "try", "catch", "finally",
    "throw", "new", "this", "super", "typeof", "instanceof", "in", "of", "true", "false",
    "null", "undefined", "void", "any", "string", "number", "boolean", "object",
    "interface", "type", "enum", "namespace", "module", "declare", "as", "is",
})

# Defaults mirrored by EngineConfig
DEFAULT_MAX_CONTENT_BYTES_FOR_NORMALIZATION = 1 * 1024 * 1024
DEFAULT_MAX_IDENTIFIERS_TRACKED = 10000
DEFAULT_MAX_IDENTIFIER_LENGTH = 100


def strip_comments(line: str) -> str:
    """Drop everything from the first ``//``, then from the first ``/*``."""
    return line.split(LINE_COMMENT, 1)[0].split(BLOCK_COMMENT_START, 1)[0]


def collapse_whitespace(text: str) -> str:
    """Strip comments and whitespace line by line; drop empty lines."""
    kept = []
    for line in text.split("\n"):
        normalized_line = WHITESPACE_PATTERN.sub(" ", strip_comments(line).strip())
        if normalized_line:
            kept.append(normalized_line)
    return "\n".join(kept)


class IdentifierNormalizer:
    """Maps identifiers to positional placeholders.

    The same identifier always gets the same placeholder within one
    normalizer; different identifiers get increasing indices in the order
    they are first seen.

    Args:
        max_identifiers: Stop assigning new placeholders after this many
        max_identifier_length: Longer tokens are never mapped
    """

    def __init__(
        self,
        max_identifiers: int = DEFAULT_MAX_IDENTIFIERS_TRACKED,
        max_identifier_length: int = DEFAULT_MAX_IDENTIFIER_LENGTH,
    ):
        self.max_identifiers = max_identifiers
        self.max_identifier_length = max_identifier_length
        self.name_map: Dict[str, str] = {}
        self.limit_hit = False

    def assign(self, identifier: str) -> Optional[str]:
        """Return the placeholder for identifier, assigning one if allowed.

        Returns:
            Placeholder string, or None when the identifier stays as written
            (keyword, too long, or the tracking cap was reached)
        """
        if identifier in self.name_map:
            return self.name_map[identifier]
        if identifier in RESERVED_KEYWORDS:
            return None
        if len(identifier) > self.max_identifier_length:
            return None
        if len(self.name_map) >= self.max_identifiers:
            self.limit_hit = True
            return None

        placeholder = f"__VAR{len(self.name_map)}__"
        self.name_map[identifier] = placeholder
        return placeholder

    def normalize(self, code: str) -> str:
        """Replace identifiers in code with their placeholders.

        Placeholders are assigned over the whole text first, then substituted
        in a single pass. Substitution looks tokens up in ``name_map``; no
        pattern is built from identifier text.
        """
        for match in IDENTIFIER_PATTERN.finditer(code):
            self.assign(match.group(1))
            if self.limit_hit:
                break

        if not self.name_map:
            return code

        def substitute(match: "re.Match[str]") -> str:
            token = match.group(1)
            return self.name_map.get(token, token)

        return IDENTIFIER_PATTERN.sub(substitute, code)


def normalize_identifiers(
    code: str,
    max_identifiers: int = DEFAULT_MAX_IDENTIFIERS_TRACKED,
    max_identifier_length: int = DEFAULT_MAX_IDENTIFIER_LENGTH,
) -> str:
    """Canonicalize identifiers in already whitespace-normalized code."""
    normalizer = IdentifierNormalizer(max_identifiers, max_identifier_length)
    normalized = normalizer.normalize(code)
    if normalizer.limit_hit:
        logger.debug(
            f"Identifier cap of {max_identifiers} reached; later identifiers left as written"
        )
    return normalized


def normalize(raw_block_text: str, config: Optional["EngineConfig"] = None) -> str:
    """Normalize a raw block for comparison.

    Pure function of (raw_block_text, config).

    Args:
        raw_block_text: The block's raw lines joined with newlines
        config: Engine configuration supplying the resource ceilings
            (defaults apply when omitted)

    Returns:
        Normalized text; identifiers are left as written when the raw text
        is larger than ``max_content_bytes_for_normalization``
    """
    if config is None:
        max_bytes = DEFAULT_MAX_CONTENT_BYTES_FOR_NORMALIZATION
        max_identifiers = DEFAULT_MAX_IDENTIFIERS_TRACKED
        max_identifier_length = DEFAULT_MAX_IDENTIFIER_LENGTH
    else:
        max_bytes = config.max_content_bytes_for_normalization
        max_identifiers = config.max_identifiers_tracked
        max_identifier_length = config.max_identifier_length

    stripped = collapse_whitespace(raw_block_text)

    if len(raw_block_text.encode("utf-8", errors="replace")) > max_bytes:
        logger.debug(
            f"Block of {len(raw_block_text)} chars exceeds normalization ceiling "
            f"({max_bytes} bytes); skipping identifier canonicalization"
        )
        return stripped

    return normalize_identifiers(stripped, max_identifiers, max_identifier_length)
