"""dupguard - block-level duplication detection for linters and pre-commit gates."""

__version__ = "0.1.0"

from dupguard.duplication import DuplicationEngine, EngineConfig, find_duplicates
from dupguard.models import CodeBlock, DuplicateGroup, ScanResult, SourceUnit

__all__ = [
    "CodeBlock",
    "DuplicateGroup",
    "DuplicationEngine",
    "EngineConfig",
    "ScanResult",
    "SourceUnit",
    "__version__",
    "find_duplicates",
]
