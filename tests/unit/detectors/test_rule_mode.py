"""Unit tests for the single-file duplication rule."""

import pytest

from dupguard.detectors import (
    RULE_MESSAGE,
    CrossFileDuplicationDetector,
    SingleFileDuplicationRule,
    parse_severity,
)
from dupguard.models import RULE_INVOCATION_ID, CodeBlock, DuplicateGroup, Severity, SourceUnit


@pytest.fixture
def duplicated_text(make_lines) -> str:
    """Twenty lines where lines 11-20 repeat lines 1-10."""
    return "\n".join(make_lines(10) + make_lines(10))


@pytest.fixture
def rule() -> SingleFileDuplicationRule:
    return SingleFileDuplicationRule.from_options()


class TestParseSeverity:
    """Test severity parsing."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("error", Severity.HIGH),
            ("warn", Severity.MEDIUM),
            ("WARNING", Severity.MEDIUM),
            ("low", Severity.LOW),
            ("critical", Severity.CRITICAL),
            (None, Severity.MEDIUM),
            ("bogus", Severity.MEDIUM),
        ],
    )
    def test_aliases(self, value, expected):
        assert parse_severity(value) == expected


class TestSingleFileDuplicationRule:
    """Test rule-mode checks."""

    def test_reports_first_duplicate(self, rule, duplicated_text):
        """Test that a repeated block yields exactly one finding."""
        findings = rule.check("src/app.ts", duplicated_text)

        assert len(findings) == 1
        finding = findings[0]
        assert finding.detector == "SingleFileDuplicationRule"
        assert finding.severity == Severity.MEDIUM
        assert finding.line_start == 1
        assert finding.line_end == 10
        assert finding.affected_files == ["src/app.ts"]
        assert finding.title == RULE_MESSAGE.format(similarity=100, start_line=1, end_line=10)
        assert finding.title.startswith("Found duplicated code (100% similar) at lines 1-10.")

    def test_description_lists_blocks(self, rule, duplicated_text):
        finding = rule.check("src/app.ts", duplicated_text)[0]
        assert finding.description.splitlines() == [
            "Same file: src/app.ts",
            "Found 2 similar blocks in the same file",
            "Block 1: Lines 1-10",
            "Block 2: Lines 11-20",
        ]
        assert finding.context["is_same_file"] is True
        assert finding.context["file_count"] == 1

    def test_only_first_group_reported(self, rule, make_lines):
        """Test that a buffer with two distinct duplicates reports one."""
        first = make_lines(10, name="alpha")
        second = [f"call{i}(arg, {i}, 'x{i}');" for i in range(10)]
        text = "\n".join(first + first + second + second)

        assert len(rule.engine.scan([SourceUnit("src/app.ts", text)]).groups) >= 2
        assert len(rule.check("src/app.ts", text)) == 1

    def test_clean_buffer(self, rule, block_text):
        assert rule.check("src/app.ts", block_text) == []

    @pytest.mark.parametrize("source_id", [None, "", "x" * 4097])
    def test_invalid_identifier_skipped(self, rule, duplicated_text, source_id):
        assert rule.check(source_id, duplicated_text) == []

    def test_excluded_path_skipped(self, duplicated_text):
        rule = SingleFileDuplicationRule.from_options({"excludedPaths": ["generated/"]})
        assert rule.check("src/generated/api.ts", duplicated_text) == []
        assert rule.check("node_modules/pkg/index.ts", duplicated_text) == []
        assert len(rule.check("src/app.ts", duplicated_text)) == 1

    def test_check_text_uses_invocation_id(self, rule, duplicated_text):
        findings = rule.check_text(duplicated_text)
        assert findings[0].affected_files == [RULE_INVOCATION_ID]

    def test_options_respected(self, make_lines):
        """Test that minLines changes the window size."""
        text = "\n".join(make_lines(12) + make_lines(12))
        rule = SingleFileDuplicationRule.from_options({"minLines": 12})
        finding = rule.check("src/app.ts", text)[0]
        assert (finding.line_start, finding.line_end) == (1, 12)

    def test_invalid_options_fall_back(self, duplicated_text):
        rule = SingleFileDuplicationRule.from_options({"minLines": "lots", "minSimilarity": 400})
        assert rule.config.min_block_lines == 10
        assert rule.config.min_similarity_percent == 80.0
        assert len(rule.check("src/app.ts", duplicated_text)) == 1

    def test_severity_configurable(self, duplicated_text):
        rule = SingleFileDuplicationRule.from_options(detector_config={"severity": "error"})
        assert rule.check("src/app.ts", duplicated_text)[0].severity == Severity.HIGH

    def test_min_severity_filters(self, duplicated_text):
        rule = SingleFileDuplicationRule.from_options(
            detector_config={"severity": "low", "min_severity": "medium"}
        )
        assert rule.check("src/app.ts", duplicated_text) == []

    def test_finding_id_stable(self, rule, duplicated_text):
        first = rule.check("src/app.ts", duplicated_text)[0]
        second = rule.check("src/app.ts", duplicated_text)[0]
        assert first.id == second.id
        assert first.id.startswith("duplicate_block_1_")


class TestRuleModeAcrossFiles:
    """Test checking several buffers independently."""

    def test_files_never_pooled(self, rule, block_text):
        """Test that identical files are not reported as cross-file duplicates."""
        units = [SourceUnit("src/a.ts", block_text), SourceUnit("src/b.ts", block_text)]
        assert rule.check_many(units) == []

    @pytest.mark.parametrize("max_workers", [1, 4])
    def test_results_in_input_order(self, rule, duplicated_text, block_text, max_workers):
        units = [
            SourceUnit("src/a.ts", duplicated_text),
            SourceUnit("src/clean.ts", block_text),
            SourceUnit("src/b.ts", duplicated_text),
        ]
        findings = rule.check_many(units, max_workers=max_workers)
        assert [f.affected_files for f in findings] == [["src/a.ts"], ["src/b.ts"]]

    def test_scan_many_sums_stats(self, rule, duplicated_text):
        units = [SourceUnit(f"src/f{i}.ts", duplicated_text) for i in range(3)]
        result = rule.scan_many(units)
        assert len(result.groups) == 3
        assert result.stats.sources_scanned == 3
        assert result.stats.blocks_extracted == 9

    def test_empty_input(self, rule):
        assert rule.scan_many([]).groups == []
        assert rule.detect([]) == []


class TestSimilarityRounding:
    """Test that reported percentages round halves up."""

    @staticmethod
    def group(similarity: float) -> DuplicateGroup:
        blocks = [CodeBlock("src/app.ts", start, start + 7, "x = 1", "v1 = 1") for start in (1, 9)]
        return DuplicateGroup.from_members(blocks, similarity=similarity)

    @pytest.mark.parametrize(
        "similarity,expected",
        [(62.5, 63), (12.5, 13), (87.5, 88), (62.4, 62), (99.5, 100), (100.0, 100)],
    )
    def test_similarity_percent(self, similarity, expected):
        assert self.group(similarity).similarity_percent == expected

    def test_rule_message(self, rule):
        finding = rule.group_to_finding(self.group(62.5))
        assert finding.title.startswith("Found duplicated code (63% similar) at lines 1-8.")

    def test_batch_title(self):
        finding = CrossFileDuplicationDetector().group_to_finding(self.group(62.5))
        assert "(63% similar)" in finding.title
