"""Input discovery: which files to scan and how they are read.

Every path handed in from outside (git output, CLI arguments) is resolved
against the project root and rejected if it escapes it. Files are size
checked before they are read.
"""

import os
import subprocess
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from dupguard.logging_config import get_logger
from dupguard.models import SourceUnit
from dupguard.validation import (
    MAX_FILE_SIZE,
    is_valid_file_size,
    should_exclude_file,
    validate_and_resolve_path,
    validate_extensions,
)

logger = get_logger(__name__)

DEFAULT_EXTENSIONS = (".ts", ".tsx")
MAX_FILES_TO_PROCESS = 1000
GIT_OUTPUT_LIMIT = 10 * 1024 * 1024

# Never descended into by discover_files
SKIP_DIRS = frozenset({
    ".git", ".hg", ".svn", "node_modules", "__pycache__", ".venv", "venv", ".tox",
})


def _matches_extension(path: str, extensions: Sequence[str]) -> bool:
    return path.lower().endswith(tuple(extensions))


def get_staged_files(
    project_root: Union[str, Path, None] = None,
    extensions: Optional[Iterable[str]] = None,
) -> List[str]:
    """Get staged (added, copied or modified) files from git.

    Args:
        project_root: Repository directory (default: current directory)
        extensions: File extensions to keep (default: .ts and .tsx)

    Returns:
        File paths relative to the repository root, at most 1000 of them.
        Empty when git fails.
    """
    wanted = validate_extensions(extensions) if extensions is not None else list(DEFAULT_EXTENSIONS)
    try:
        result = subprocess.run(
            ["git", "diff", "--cached", "--name-only", "--diff-filter=ACM"],
            capture_output=True,
            text=True,
            check=True,
            cwd=str(project_root) if project_root else None,
        )
    except (subprocess.CalledProcessError, OSError) as e:
        logger.error(f"Failed to get staged files: {e}")
        return []

    output = result.stdout[:GIT_OUTPUT_LIMIT]
    files = [line.strip() for line in output.split("\n") if line.strip()]
    files = [f for f in files if _matches_extension(f, wanted)]

    if len(files) > MAX_FILES_TO_PROCESS:
        logger.warning(
            f"{len(files)} staged files match, checking the first {MAX_FILES_TO_PROCESS}"
        )
        files = files[:MAX_FILES_TO_PROCESS]
    return files


def discover_files(
    root: Union[str, Path],
    extensions: Optional[Iterable[str]] = None,
    exclude: Optional[Sequence[str]] = None,
) -> List[str]:
    """Walk a directory for source files.

    Args:
        root: Directory to walk
        extensions: File extensions to keep (default: .ts and .tsx)
        exclude: Extra exclusion patterns, applied on top of the defaults

    Returns:
        Sorted paths relative to root, using forward slashes
    """
    root_path = Path(root)
    wanted = validate_extensions(extensions) if extensions is not None else list(DEFAULT_EXTENSIONS)
    found = []

    for dirpath, dirnames, filenames in os.walk(root_path):
        dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRS)
        for filename in filenames:
            if not _matches_extension(filename, wanted):
                continue
            relative = (Path(dirpath) / filename).relative_to(root_path).as_posix()
            if should_exclude_file(relative, exclude):
                logger.debug(f"Excluded by path pattern: {relative}")
                continue
            found.append(relative)

    found.sort()
    if len(found) > MAX_FILES_TO_PROCESS:
        logger.warning(f"Found {len(found)} files, checking the first {MAX_FILES_TO_PROCESS}")
        found = found[:MAX_FILES_TO_PROCESS]
    return found


def load_source_units(
    paths: Iterable[str],
    project_root: Union[str, Path, None] = None,
    max_file_size: int = MAX_FILE_SIZE,
) -> List[SourceUnit]:
    """Read files into SourceUnits, skipping anything unsafe or unreadable.

    Args:
        paths: File paths relative to project_root
        project_root: Directory every path must stay within (default: cwd)
        max_file_size: Larger files are skipped without being read

    Returns:
        One SourceUnit per readable file, in input order; ``source_id`` is
        the path as given
    """
    base = Path(project_root) if project_root else Path.cwd()
    units = []

    for path in paths:
        resolved = validate_and_resolve_path(path, base)
        if resolved is None:
            logger.warning(f"Invalid or unsafe path: {str(path)[:200]}")
            continue
        if not is_valid_file_size(resolved, max_file_size):
            logger.warning(f"File too large, empty or missing: {path}")
            continue
        try:
            text = resolved.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.warning(f"Could not read {path}: {e}")
            continue
        units.append(SourceUnit(source_id=path, text=text))

    logger.debug(f"Loaded {len(units)} of the requested source file(s)")
    return units
