"""Input validation utilities with helpful error messages.

Covers the inputs dupguard accepts from outside the engine:
- Excluded path patterns (config files, env vars, CLI options, rule options)
- File paths handed in by git or the user (containment within the project root)
- File sizes (prechecked before a file is read)
"""

import os
import posixpath
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence

from dupguard.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_EXCLUDED_PATHS = (
    "node_modules/",
    ".husky/",
    "scripts/",
    "dist/",
    "build/",
)

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
MAX_PATH_LENGTH = 4096
MAX_EXCLUDED_PATHS = 100


class ValidationError(Exception):
    """Raised when input validation fails.

    This exception includes helpful error messages and suggestions for fixing the issue.
    """
    def __init__(self, message: str, suggestion: Optional[str] = None):
        self.message = message
        self.suggestion = suggestion
        full_message = message
        if suggestion:
            full_message += f"\n\n💡 Suggestion: {suggestion}"
        super().__init__(full_message)


def _normalize_path(path: str) -> str:
    """Normalize a path for substring comparison, keeping a trailing slash."""
    unified = path.replace("\\", "/")
    normalized = posixpath.normpath(unified)
    if unified.endswith("/") and not normalized.endswith("/"):
        normalized += "/"
    return normalized


def is_valid_path_pattern(pattern: Any) -> bool:
    """Check that an exclusion pattern cannot be used for path traversal.

    Rejects non-strings, empty strings, anything longer than 4096 characters,
    patterns containing ``..`` or ``~``, and absolute paths.

    Args:
        pattern: Candidate pattern

    Returns:
        True if the pattern is safe to use
    """
    if not isinstance(pattern, str) or not pattern:
        return False
    if len(pattern) > MAX_PATH_LENGTH:
        return False
    if ".." in pattern or "~" in pattern:
        return False
    if os.path.isabs(pattern) or pattern.startswith(("/", "\\")):
        return False
    return True


def validate_excluded_paths(patterns: Any) -> List[str]:
    """Filter an exclusion list down to its safe entries.

    Unsafe entries are dropped (not fatal) and the list is capped at
    100 entries.

    Args:
        patterns: Anything; only a list/tuple of strings yields entries

    Returns:
        List of validated patterns
    """
    if not isinstance(patterns, (list, tuple)):
        if patterns is not None:
            logger.warning(f"Ignoring excluded paths of type {type(patterns).__name__}, expected a list")
        return []

    valid = []
    for pattern in patterns:
        if is_valid_path_pattern(pattern):
            valid.append(pattern)
        else:
            logger.warning(f"Rejected unsafe excluded path pattern: {str(pattern)[:80]!r}")

    if len(valid) > MAX_EXCLUDED_PATHS:
        logger.warning(
            f"Excluded path list has {len(valid)} entries, keeping the first {MAX_EXCLUDED_PATHS}"
        )
        valid = valid[:MAX_EXCLUDED_PATHS]
    return valid


def should_exclude_file(
    file_path: Any,
    custom_excluded_paths: Optional[Sequence[str]] = None,
    include_defaults: bool = True,
) -> bool:
    """Check whether a file falls under an exclusion pattern.

    Matching is a substring test on normalized paths, so ``dist/`` excludes
    ``packages/app/dist/index.ts`` as well as ``dist/index.ts``.

    Args:
        file_path: Path (or identifier) of the file
        custom_excluded_paths: Extra patterns, validated before use
        include_defaults: Also apply DEFAULT_EXCLUDED_PATHS

    Returns:
        True if the file should be skipped
    """
    if not isinstance(file_path, str) or not file_path:
        return False

    patterns: List[str] = list(DEFAULT_EXCLUDED_PATHS) if include_defaults else []
    patterns.extend(validate_excluded_paths(list(custom_excluded_paths or [])))

    normalized_path = _normalize_path(file_path)
    return any(_normalize_path(pattern) in normalized_path for pattern in patterns)


def validate_and_resolve_path(file_path: Any, base_path: os.PathLike | str) -> Optional[Path]:
    """Resolve a path against a base directory, refusing anything outside it.

    Args:
        file_path: Path relative to base_path (absolute paths must still land inside it)
        base_path: Directory the result must stay within

    Returns:
        Resolved absolute Path, or None if the path is invalid or escapes base_path
    """
    if not isinstance(file_path, str) or not file_path:
        return None
    if len(file_path) > MAX_PATH_LENGTH:
        return None

    try:
        base_resolved = Path(base_path).resolve()
        resolved = (base_resolved / file_path).resolve()
    except (OSError, ValueError):
        return None

    try:
        resolved.relative_to(base_resolved)
    except ValueError:
        return None
    return resolved


def is_valid_file_size(file_path: os.PathLike | str, max_size: int = MAX_FILE_SIZE) -> bool:
    """Check that a file exists, is non-empty and is no larger than max_size bytes."""
    try:
        size = Path(file_path).stat().st_size
    except OSError:
        return False
    return 0 < size <= max_size


def validate_project_root(project_root: str) -> Path:
    """Validate the project root used to resolve file paths.

    Args:
        project_root: Path to the project directory

    Returns:
        Resolved Path object

    Raises:
        ValidationError: If path is invalid or inaccessible
    """
    if not project_root or not project_root.strip():
        raise ValidationError(
            "Project root cannot be empty",
            "Provide a valid path to your project directory"
        )

    path = Path(project_root).expanduser()

    if not path.exists():
        raise ValidationError(
            f"Project root does not exist: {project_root}",
            f"Check the path and try again. Current directory is {Path.cwd()}"
        )

    if not path.is_dir():
        raise ValidationError(
            f"Project root must be a directory, not a file: {project_root}",
            "Provide the path to the project root directory, not a specific file"
        )

    if not os.access(path, os.R_OK):
        raise ValidationError(
            f"Project root is not readable: {project_root}",
            f"Check file permissions. Try: chmod +r {project_root}"
        )

    return path.resolve()


def validate_output_path(output_path: str) -> Path:
    """Validate that a report can be written to output_path.

    Raises:
        ValidationError: If the parent directory is missing or not writable
    """
    if not output_path or not output_path.strip():
        raise ValidationError(
            "Output path cannot be empty",
            "Provide a file path such as duplicates.sarif"
        )

    path = Path(output_path).expanduser()

    if path.exists() and path.is_dir():
        raise ValidationError(
            f"Output path is a directory: {output_path}",
            f"Provide a file name, e.g. {path / 'duplicates.json'}"
        )

    parent = path.parent if str(path.parent) else Path(".")
    if not parent.exists():
        raise ValidationError(
            f"Output directory does not exist: {parent}",
            f"Create it first: mkdir -p {parent}"
        )

    if not os.access(parent, os.W_OK):
        raise ValidationError(
            f"Output directory is not writable: {parent}",
            f"Check directory permissions. Try: chmod +w {parent}"
        )

    return path


def validate_extensions(extensions: Iterable[str]) -> List[str]:
    """Normalize file extensions to the ``.ext`` form, dropping empty entries."""
    normalized = []
    for ext in extensions:
        if not isinstance(ext, str):
            continue
        ext = ext.strip()
        if not ext:
            continue
        if not ext.startswith("."):
            ext = f".{ext}"
        normalized.append(ext.lower())
    return normalized
