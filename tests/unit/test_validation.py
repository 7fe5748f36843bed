"""Unit tests for validation utilities."""

import os

import pytest

from dupguard.validation import (
    DEFAULT_EXCLUDED_PATHS,
    MAX_EXCLUDED_PATHS,
    ValidationError,
    is_valid_file_size,
    is_valid_path_pattern,
    should_exclude_file,
    validate_and_resolve_path,
    validate_excluded_paths,
    validate_extensions,
    validate_output_path,
    validate_project_root,
)


class TestValidationError:
    """Test ValidationError exception class."""

    def test_validation_error_with_message_only(self):
        """Test ValidationError with just a message."""
        error = ValidationError("Something went wrong")
        assert error.message == "Something went wrong"
        assert error.suggestion is None
        assert str(error) == "Something went wrong"

    def test_validation_error_with_suggestion(self):
        """Test ValidationError with message and suggestion."""
        error = ValidationError("Invalid input", "Try using a different value")
        assert error.suggestion == "Try using a different value"
        assert "💡 Suggestion: Try using a different value" in str(error)


class TestPathPatterns:
    """Test exclusion pattern safety checks."""

    @pytest.mark.parametrize("pattern", ["generated/", "src/legacy/", "foo.test.ts", "a\\b"])
    def test_safe_patterns(self, pattern):
        assert is_valid_path_pattern(pattern) is True

    @pytest.mark.parametrize(
        "pattern",
        ["", None, 42, "../outside", "src/../../etc", "~/secrets", "/etc/passwd", "\\windows", "x" * 4097],
    )
    def test_unsafe_patterns(self, pattern):
        assert is_valid_path_pattern(pattern) is False

    def test_pattern_at_length_limit_accepted(self):
        assert is_valid_path_pattern("x" * 4096) is True

    def test_validate_drops_unsafe_entries(self):
        assert validate_excluded_paths(["ok/", "../no", "", "fine/"]) == ["ok/", "fine/"]

    def test_validate_non_list(self):
        assert validate_excluded_paths("generated/") == []
        assert validate_excluded_paths(None) == []
        assert validate_excluded_paths({"a": 1}) == []

    def test_validate_truncates(self):
        patterns = [f"dir{i}/" for i in range(MAX_EXCLUDED_PATHS + 20)]
        validated = validate_excluded_paths(patterns)
        assert len(validated) == MAX_EXCLUDED_PATHS
        assert validated[-1] == f"dir{MAX_EXCLUDED_PATHS - 1}/"


class TestShouldExcludeFile:
    """Test exclusion matching."""

    @pytest.mark.parametrize("pattern", DEFAULT_EXCLUDED_PATHS)
    def test_default_exclusions(self, pattern):
        assert should_exclude_file(f"packages/app/{pattern}index.ts") is True

    def test_defaults_can_be_skipped(self):
        assert should_exclude_file("dist/index.ts", include_defaults=False) is False

    def test_substring_match(self):
        assert should_exclude_file("src/generated/api.ts", ["generated/"]) is True
        assert should_exclude_file("src/app.ts", ["generated/"]) is False

    def test_windows_separators(self):
        assert should_exclude_file("src\\generated\\api.ts", ["generated/"]) is True

    def test_path_normalized_before_matching(self):
        assert should_exclude_file("src/./generated/api.ts", ["generated/"]) is True

    def test_unsafe_custom_patterns_ignored(self):
        assert should_exclude_file("src/app.ts", ["../", "/"]) is False

    @pytest.mark.parametrize("path", [None, "", 42])
    def test_invalid_paths_never_excluded(self, path):
        assert should_exclude_file(path, ["generated/"]) is False


class TestResolvePath:
    """Test containment checks for file paths."""

    def test_relative_path_inside_root(self, tmp_path):
        (tmp_path / "src").mkdir()
        resolved = validate_and_resolve_path("src/a.ts", tmp_path)
        assert resolved == (tmp_path / "src" / "a.ts").resolve()

    def test_traversal_rejected(self, tmp_path):
        assert validate_and_resolve_path("../outside.ts", tmp_path) is None

    def test_absolute_path_outside_rejected(self, tmp_path):
        assert validate_and_resolve_path("/etc/passwd", tmp_path) is None

    def test_absolute_path_inside_accepted(self, tmp_path):
        target = tmp_path / "a.ts"
        assert validate_and_resolve_path(str(target), tmp_path) == target.resolve()

    @pytest.mark.parametrize("path", [None, "", 7])
    def test_invalid_input(self, tmp_path, path):
        assert validate_and_resolve_path(path, tmp_path) is None

    def test_overlong_path(self, tmp_path):
        assert validate_and_resolve_path("a" * 4097, tmp_path) is None


class TestFileSize:
    """Test file size prechecks."""

    def test_normal_file(self, tmp_path):
        path = tmp_path / "a.ts"
        path.write_text("const a = 1;")
        assert is_valid_file_size(path) is True

    def test_empty_file(self, tmp_path):
        path = tmp_path / "a.ts"
        path.write_text("")
        assert is_valid_file_size(path) is False

    def test_too_large(self, tmp_path):
        path = tmp_path / "a.ts"
        path.write_text("x" * 11)
        assert is_valid_file_size(path, max_size=10) is False

    def test_missing_file(self, tmp_path):
        assert is_valid_file_size(tmp_path / "missing.ts") is False


class TestValidateProjectRoot:
    """Test project root validation."""

    def test_valid_directory(self, tmp_path):
        assert validate_project_root(str(tmp_path)) == tmp_path.resolve()

    def test_empty(self):
        with pytest.raises(ValidationError, match="cannot be empty"):
            validate_project_root("  ")

    def test_missing(self, tmp_path):
        with pytest.raises(ValidationError, match="does not exist"):
            validate_project_root(str(tmp_path / "missing"))

    def test_file_instead_of_directory(self, tmp_path):
        path = tmp_path / "file.ts"
        path.write_text("x")
        with pytest.raises(ValidationError, match="must be a directory"):
            validate_project_root(str(path))


class TestValidateOutputPath:
    """Test report output path validation."""

    def test_valid(self, tmp_path):
        path = tmp_path / "report.json"
        assert validate_output_path(str(path)) == path

    def test_directory_rejected(self, tmp_path):
        with pytest.raises(ValidationError, match="is a directory"):
            validate_output_path(str(tmp_path))

    def test_missing_parent(self, tmp_path):
        with pytest.raises(ValidationError, match="does not exist"):
            validate_output_path(str(tmp_path / "missing" / "report.json"))

    @pytest.mark.skipif(os.geteuid() == 0 if hasattr(os, "geteuid") else True, reason="root ignores permissions")
    def test_unwritable_parent(self, tmp_path):
        locked = tmp_path / "locked"
        locked.mkdir()
        locked.chmod(0o500)
        try:
            with pytest.raises(ValidationError, match="not writable"):
                validate_output_path(str(locked / "report.json"))
        finally:
            locked.chmod(0o700)


class TestValidateExtensions:
    """Test extension normalization."""

    def test_normalizes(self):
        assert validate_extensions(["ts", ".TSX", "  ", "", 3]) == [".ts", ".tsx"]
