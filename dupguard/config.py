"""Configuration management for dupguard.

Configuration Priority Chain (highest to lowest):
1. Command-line arguments (--min-lines, --exclude, etc.)
2. Environment variables (DUPGUARD_MIN_LINES, DUPGUARD_EXCLUDED_PATHS, etc.)
3. Config file (.duprc, dupguard.toml)
4. Built-in defaults

Config files are searched hierarchically:
1. Current directory
2. Parent directories (up to root)
3. User home directory (~/.duprc or ~/.config/dupguard.toml)

Environment Variable Names:
- DUPGUARD_MIN_LINES (legacy: MIN_DUPLICATION_LINES)
- DUPGUARD_MIN_SIMILARITY (legacy: MIN_SIMILARITY)
- DUPGUARD_EXCLUDED_PATHS (legacy: EXCLUDED_PATHS, comma-separated)
- DUPGUARD_EXTENSIONS (comma-separated)
- DUPGUARD_PROJECT_ROOT (legacy: PROJECT_ROOT)
- DUPGUARD_LOG_LEVEL
- DUPGUARD_LOG_FORMAT
- DUPGUARD_LOG_FILE

Example .duprc (YAML):
```yaml
duplication:
  min_lines: 10
  min_similarity: 80
  excluded_paths:
    - generated/
    - src/legacy/
  extensions: [".ts", ".tsx"]

logging:
  level: INFO
  format: human
```

Example dupguard.toml:
```toml
[duplication]
min_lines = 10
min_similarity = 80
excluded_paths = ["generated/", "src/legacy/"]
extensions = [".ts", ".tsx"]

[logging]
level = "INFO"
format = "human"
```
"""

import json
import os
import re
import sys
from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from dupguard.duplication.engine import (
    DEFAULT_MAX_BLOCKS,
    DEFAULT_MAX_COMPARISONS,
    DEFAULT_MIN_BLOCK_LINES,
    DEFAULT_MIN_SIMILARITY_PERCENT,
    MAX_MIN_BLOCK_LINES,
    EngineConfig,
    coerce_number,
)
from dupguard.logging_config import get_logger
from dupguard.sources import DEFAULT_EXTENSIONS
from dupguard.validation import MAX_EXCLUDED_PATHS, is_valid_path_pattern, validate_extensions

logger = get_logger(__name__)

CONFIG_FILE_NAMES = (".duprc", "dupguard.toml")


class LogLevel(str, Enum):
    """Valid log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Valid log output formats."""
    HUMAN = "human"
    JSON = "json"


def _get_env_with_fallback(new_key: str, old_key: Optional[str] = None) -> Optional[str]:
    """Get environment variable with deprecation warning for old keys.

    Args:
        new_key: The new (preferred) environment variable name
        old_key: The deprecated environment variable name (optional)

    Returns:
        The environment variable value, or None if not set
    """
    if value := os.getenv(new_key):
        return value

    if old_key:
        if value := os.getenv(old_key):
            logger.warning(
                f"Environment variable '{old_key}' is deprecated, use '{new_key}' instead"
            )
            return value

    return None


def _split_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class ConfigError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""
    pass


@dataclass
class DuplicationConfig:
    """Duplication detection configuration."""
    min_lines: int = DEFAULT_MIN_BLOCK_LINES
    min_similarity: float = DEFAULT_MIN_SIMILARITY_PERCENT
    excluded_paths: List[str] = field(default_factory=list)
    extensions: List[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    max_blocks: int = DEFAULT_MAX_BLOCKS
    max_comparisons: int = DEFAULT_MAX_COMPARISONS
    project_root: Optional[str] = None


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    format: str = "human"  # "human" or "json"
    file: Optional[str] = None


def _section(section_cls, data: Any, name: str):
    """Build a section dataclass, ignoring keys it does not define."""
    if not isinstance(data, dict):
        if data is not None:
            logger.warning(f"Config section '{name}' must be a mapping, ignoring")
        return section_cls()

    known = {f.name for f in fields(section_cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        logger.warning(f"Ignoring unknown keys in '{name}': {', '.join(unknown)}")
    return section_cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class DupguardConfig:
    """Complete dupguard configuration."""
    duplication: DuplicationConfig = field(default_factory=DuplicationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DupguardConfig":
        """Create config from dictionary.

        Args:
            data: Configuration dictionary

        Returns:
            DupguardConfig instance
        """
        data = _expand_env_vars(data or {})

        return cls(
            duplication=_section(DuplicationConfig, data.get("duplication"), "duplication"),
            logging=_section(LoggingConfig, data.get("logging"), "logging"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary.

        Returns:
            Configuration as dictionary
        """
        return {
            "duplication": asdict(self.duplication),
            "logging": asdict(self.logging),
        }

    def merge(self, other: "DupguardConfig") -> "DupguardConfig":
        """Merge with another config (other takes precedence).

        Args:
            other: Config to merge with

        Returns:
            New merged config
        """
        merged_dict = self.to_dict()
        other_dict = other.to_dict()

        for section, values in other_dict.items():
            if section not in merged_dict:
                merged_dict[section] = values
            else:
                merged_dict[section].update(values)

        return DupguardConfig.from_dict(merged_dict)

    def with_overrides(self, **sections: Dict[str, Any]) -> "DupguardConfig":
        """Copy with individual keys replaced; None values are ignored.

        Example:
            >>> config.with_overrides(duplication={"min_lines": 12, "min_similarity": None})
        """
        overrides = {
            section: {k: v for k, v in values.items() if v is not None}
            for section, values in sections.items()
        }
        return DupguardConfig.from_dict(_deep_merge_dicts(self.to_dict(), overrides))

    def to_engine_config(self) -> EngineConfig:
        """Resolve the duplication section into a clamped EngineConfig."""
        dup = self.duplication
        return EngineConfig.from_options({
            "min_block_lines": dup.min_lines,
            "min_similarity_percent": dup.min_similarity,
            "excluded_path_patterns": dup.excluded_paths,
            "max_blocks": dup.max_blocks,
            "max_comparisons": dup.max_comparisons,
        })


def _expand_env_vars(data: Union[Dict, list, str, Any]) -> Any:
    """Recursively expand environment variables in config data.

    Supports ${VAR_NAME} and $VAR_NAME syntax.

    Args:
        data: Configuration data (dict, list, str, or primitive)

    Returns:
        Data with environment variables expanded
    """
    if isinstance(data, dict):
        return {k: _expand_env_vars(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        pattern = re.compile(r'\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)')

        def replace_var(match):
            var_name = match.group(1) or match.group(2)
            return os.environ.get(var_name, match.group(0))

        return pattern.sub(replace_var, data)
    else:
        return data


def find_config_file(start_dir: Optional[Path] = None) -> Optional[Path]:
    """Find config file using hierarchical search.

    Searches in order:
    1. start_dir (or current directory)
    2. Parent directories up to root
    3. User home directory

    Looks for (in order of preference):
    - .duprc (YAML/JSON)
    - dupguard.toml

    Args:
        start_dir: Starting directory for search (default: current directory)

    Returns:
        Path to config file, or None if not found
    """
    if start_dir is None:
        start_dir = Path.cwd()
    else:
        start_dir = Path(start_dir).resolve()

    current = start_dir
    while True:
        for name in CONFIG_FILE_NAMES:
            candidate = current / name
            if candidate.is_file():
                logger.info(f"Found config file: {candidate}")
                return candidate

        parent = current.parent
        if parent == current:
            break
        current = parent

    home = Path.home()
    for candidate in (home / ".duprc", home / ".config" / "dupguard.toml"):
        if candidate.is_file():
            logger.info(f"Found config file: {candidate}")
            return candidate

    logger.debug("No config file found")
    return None


def load_config_file(file_path: Path) -> Dict[str, Any]:
    """Load configuration from file.

    Supports:
    - .duprc (YAML or JSON)
    - *.yaml / *.yml / *.json
    - dupguard.toml (TOML)

    Args:
        file_path: Path to config file

    Returns:
        Configuration dictionary

    Raises:
        ConfigError: If file cannot be parsed or format not supported
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise ConfigError(f"Config file not found: {file_path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to read config file {file_path}: {e}")

    if file_path.name == ".duprc" or file_path.suffix in [".yaml", ".yml", ".json"]:
        if file_path.suffix in [".yaml", ".yml", ""]:
            try:
                data = yaml.safe_load(content)
                logger.debug(f"Loaded YAML config from {file_path}")
                return _require_mapping(data or {}, file_path)
            except yaml.YAMLError:
                pass  # Try JSON

        try:
            data = json.loads(content)
            logger.debug(f"Loaded JSON config from {file_path}")
            return _require_mapping(data, file_path)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Failed to parse {file_path} as YAML or JSON: {e}")

    elif file_path.suffix == ".toml":
        try:
            data = tomllib.loads(content)
            logger.debug(f"Loaded TOML config from {file_path}")
            return data
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Failed to parse TOML config {file_path}: {e}")

    else:
        raise ConfigError(f"Unsupported config file format: {file_path}")


def _require_mapping(data: Any, file_path: Path) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {file_path} must contain a mapping at the top level")
    return data


def load_config_from_env() -> Dict[str, Any]:
    """Load configuration from environment variables.

    Environment variables take precedence over config files but are
    overridden by command-line arguments. The unprefixed names read by older
    hook setups are still honored, with a deprecation warning.

    Returns:
        Configuration dictionary with values from environment
    """
    config = {}

    duplication: Dict[str, Any] = {}
    if min_lines := _get_env_with_fallback("DUPGUARD_MIN_LINES", "MIN_DUPLICATION_LINES"):
        try:
            duplication["min_lines"] = int(min_lines)
        except ValueError:
            logger.warning(f"Invalid DUPGUARD_MIN_LINES value: {min_lines}, ignoring")
    if min_similarity := _get_env_with_fallback("DUPGUARD_MIN_SIMILARITY", "MIN_SIMILARITY"):
        try:
            duplication["min_similarity"] = float(min_similarity)
        except ValueError:
            logger.warning(f"Invalid DUPGUARD_MIN_SIMILARITY value: {min_similarity}, ignoring")
    if excluded := _get_env_with_fallback("DUPGUARD_EXCLUDED_PATHS", "EXCLUDED_PATHS"):
        duplication["excluded_paths"] = _split_list(excluded)
    if extensions := _get_env_with_fallback("DUPGUARD_EXTENSIONS"):
        duplication["extensions"] = validate_extensions(_split_list(extensions))
    if project_root := _get_env_with_fallback("DUPGUARD_PROJECT_ROOT", "PROJECT_ROOT"):
        duplication["project_root"] = project_root
    if duplication:
        config["duplication"] = duplication

    logging_cfg = {}
    if level := _get_env_with_fallback("DUPGUARD_LOG_LEVEL"):
        logging_cfg["level"] = level.upper()
    if fmt := _get_env_with_fallback("DUPGUARD_LOG_FORMAT"):
        logging_cfg["format"] = fmt.lower()
    if file := _get_env_with_fallback("DUPGUARD_LOG_FILE"):
        logging_cfg["file"] = file
    if logging_cfg:
        config["logging"] = logging_cfg

    return config


def _deep_merge_dicts(base: Dict, override: Dict) -> Dict:
    """Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary with overriding values

    Returns:
        Merged dictionary (base is not modified)
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge_dicts(result[key], value)
        else:
            result[key] = value

    return result


def load_config(
    config_file: Optional[Union[str, Path]] = None,
    search_path: Optional[Path] = None,
    use_env: bool = True,
) -> DupguardConfig:
    """Load dupguard configuration with fallback chain.

    Priority order (highest to lowest):
    1. Command-line arguments (handled by CLI)
    2. Environment variables (DUPGUARD_*)
    3. Config file (.duprc, dupguard.toml)
    4. Built-in defaults

    Args:
        config_file: Explicit path to config file (optional)
        search_path: Starting directory for hierarchical search (default: current dir)
        use_env: Whether to load from environment variables (default: True)

    Returns:
        DupguardConfig instance with merged configuration

    Raises:
        ConfigError: If specified config file cannot be loaded
    """
    merged_data: Dict[str, Any] = {}

    if config_file:
        config_path = Path(config_file)
        file_data = load_config_file(config_path)
        logger.info(f"Loaded configuration from {config_path}")
        merged_data = _deep_merge_dicts(merged_data, file_data)
    else:
        config_path = find_config_file(search_path)
        if config_path:
            file_data = load_config_file(config_path)
            logger.info(f"Loaded configuration from {config_path}")
            merged_data = _deep_merge_dicts(merged_data, file_data)

    if use_env:
        env_data = load_config_from_env()
        if env_data:
            logger.debug("Loaded configuration from environment variables")
            merged_data = _deep_merge_dicts(merged_data, env_data)

    return DupguardConfig.from_dict(merged_data)


def validate_config(config: DupguardConfig) -> List[str]:
    """Validate configuration and return warnings.

    Args:
        config: The configuration to validate

    Returns:
        List of warning messages (empty if no warnings)

    Numeric values the engine would replace with its defaults only warn.

    Raises:
        ConfigError: If a section has a shape that cannot be used at all
    """
    warnings: List[str] = []
    dup = config.duplication

    min_lines = coerce_number(dup.min_lines)
    if min_lines is None or not 0 < min_lines <= MAX_MIN_BLOCK_LINES:
        warnings.append(
            f"duplication.min_lines {dup.min_lines!r} is not a number in (0, {MAX_MIN_BLOCK_LINES}]; "
            f"using the default {DEFAULT_MIN_BLOCK_LINES}"
        )
    elif min_lines < 5:
        warnings.append(
            "duplication.min_lines < 5 reports very short blocks and is likely to be noisy. "
            "Consider 8-15 lines."
        )

    min_similarity = coerce_number(dup.min_similarity)
    if min_similarity is None or not 0 <= min_similarity <= 100:
        warnings.append(
            f"duplication.min_similarity {dup.min_similarity!r} is not a number in [0, 100]; "
            f"using the default {DEFAULT_MIN_SIMILARITY_PERCENT:g}"
        )
    elif min_similarity < 50:
        warnings.append(
            "duplication.min_similarity < 50 groups blocks that share less than half "
            "of their lines. Consider 70-90."
        )

    for name, value, default in (
        ("max_blocks", dup.max_blocks, DEFAULT_MAX_BLOCKS),
        ("max_comparisons", dup.max_comparisons, DEFAULT_MAX_COMPARISONS),
    ):
        number = coerce_number(value)
        if number is None or number < 1:
            warnings.append(f"duplication.{name} {value!r} must be at least 1; using the default {default}")

    if not isinstance(dup.excluded_paths, list):
        raise ConfigError("duplication.excluded_paths must be a list of path patterns")
    for pattern in dup.excluded_paths:
        if not is_valid_path_pattern(pattern):
            warnings.append(
                f"duplication.excluded_paths entry {str(pattern)[:80]!r} is unsafe "
                "(absolute, contains '..' or '~', or empty) and will be ignored"
            )
    if len(dup.excluded_paths) > MAX_EXCLUDED_PATHS:
        warnings.append(
            f"duplication.excluded_paths has {len(dup.excluded_paths)} entries; "
            f"only the first {MAX_EXCLUDED_PATHS} are used"
        )

    if not isinstance(dup.extensions, list) or not dup.extensions:
        raise ConfigError("duplication.extensions must be a non-empty list such as ['.ts', '.tsx']")
    for ext in dup.extensions:
        if isinstance(ext, str) and not ext.startswith("."):
            warnings.append(f"duplication.extensions entry '{ext}' will be read as '.{ext}'")

    valid_levels = [level.value for level in LogLevel]
    if str(config.logging.level).upper() not in valid_levels:
        raise ConfigError(f"logging.level must be one of: {', '.join(valid_levels)}")

    valid_formats = [fmt.value for fmt in LogFormat]
    if config.logging.format not in valid_formats:
        raise ConfigError(f"logging.format must be one of: {', '.join(valid_formats)}")

    return warnings


def generate_config_template(format: str = "yaml") -> str:
    """Generate configuration file template.

    Args:
        format: Template format ("yaml", "json", or "toml")

    Returns:
        Configuration template as string

    Raises:
        ValueError: If format is not supported
    """
    config = DupguardConfig()
    data = config.to_dict()
    data["duplication"].pop("project_root")
    data["logging"].pop("file")

    if format == "yaml":
        template = yaml.dump(data, default_flow_style=False, sort_keys=False)
        return f"""# dupguard Configuration File (.duprc)
#
# This file configures dupguard's behavior. It can be placed:
# - In your project root: .duprc
# - In your home directory: ~/.duprc
# - In your config directory: ~/.config/dupguard.toml
#
# Environment variables can be referenced using ${{VAR_NAME}} syntax.

{template}"""

    elif format == "json":
        commented_data = {
            "_comment": "dupguard Configuration File (.duprc)",
            "_note": "Environment variables can be referenced using ${VAR_NAME} syntax",
        }
        commented_data.update(data)
        return json.dumps(commented_data, indent=2)

    elif format == "toml":
        dup = data["duplication"]
        lines = [
            "# dupguard Configuration File (dupguard.toml)",
            "#",
            "# This file configures dupguard's behavior. It can be placed:",
            "# - In your project root: dupguard.toml",
            "# - In your home directory: ~/.config/dupguard.toml",
            "#",
            "# Environment variables can be referenced using ${VAR_NAME} syntax.",
            "",
            "[duplication]",
            f'min_lines = {dup["min_lines"]}',
            f'min_similarity = {dup["min_similarity"]}',
            f'excluded_paths = {json.dumps(dup["excluded_paths"])}',
            f'extensions = {json.dumps(dup["extensions"])}',
            f'max_blocks = {dup["max_blocks"]}',
            f'max_comparisons = {dup["max_comparisons"]}',
            "",
            "[logging]",
            f'level = "{data["logging"]["level"]}"',
            f'format = "{data["logging"]["format"]}"',
        ]

        return "\n".join(lines) + "\n"

    else:
        raise ValueError(f"Unsupported format: {format}. Use 'yaml', 'json', or 'toml'")
