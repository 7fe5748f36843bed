"""SARIF (Static Analysis Results Interchange Format) reporter.

Generates SARIF 2.1.0 compliant output for integration with GitHub Code Scanning,
Azure DevOps, and other SARIF-compatible tools.

Each duplicate group becomes one result located at its root block; the other
members are attached as related locations.

SARIF Specification: https://docs.oasis-open.org/sarif/sarif/v2.1.0/sarif-v2.1.0.html
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from dupguard.logging_config import get_logger
from dupguard.models import CodeBlock, DuplicateGroup, ScanResult, Severity
from dupguard.reporters.base_reporter import BaseReporter

logger = get_logger(__name__)

# SARIF 2.1.0 schema URI
SARIF_SCHEMA = "https://raw.githubusercontent.com/oasis-tcs/sarif-spec/master/Schemata/sarif-schema-2.1.0.json"
SARIF_VERSION = "2.1.0"

RULE_ID = "dupguard/code-duplication"

# Map dupguard severity to SARIF level
SEVERITY_TO_SARIF_LEVEL = {
    Severity.CRITICAL: "error",
    Severity.HIGH: "error",
    Severity.MEDIUM: "warning",
    Severity.LOW: "note",
    Severity.INFO: "note",
}


class SARIFReporter(BaseReporter):
    """Generate SARIF 2.1.0 compliant reports from scan results."""

    def __init__(
        self,
        repo_path: Optional[Path] = None,
        tool_name: str = "dupguard",
        tool_version: Optional[str] = None,
        severity: Severity = Severity.MEDIUM,
    ):
        """Initialize SARIF reporter.

        Args:
            repo_path: Path to project root (used for %SRCROOT%)
            tool_name: Name of the analysis tool
            tool_version: Version of the analysis tool
            severity: Severity reported for every duplicate group
        """
        self.repo_path = Path(repo_path) if repo_path else None
        self.tool_name = tool_name
        self.severity = severity

        if tool_version is None:
            from dupguard import __version__
            tool_version = __version__
        self.tool_version = tool_version

    def generate_string(self, result: ScanResult) -> str:
        """Generate SARIF report as a string."""
        return json.dumps(self._build_sarif(result), indent=2, ensure_ascii=False)

    def _build_sarif(self, result: ScanResult) -> Dict[str, Any]:
        """Build complete SARIF document.

        Args:
            result: Scan result

        Returns:
            SARIF document as dictionary
        """
        level = SEVERITY_TO_SARIF_LEVEL.get(self.severity, "warning")

        sarif = {
            "$schema": SARIF_SCHEMA,
            "version": SARIF_VERSION,
            "runs": [
                {
                    "tool": {
                        "driver": {
                            "name": self.tool_name,
                            "version": self.tool_version,
                            "rules": [self._build_rule(level)],
                        }
                    },
                    "results": [self._build_result(group, level) for group in result.groups],
                    "invocations": [
                        {
                            "executionSuccessful": True,
                            "endTimeUtc": datetime.now(timezone.utc).isoformat(),
                            "toolExecutionNotifications": self._build_notifications(result),
                        }
                    ],
                }
            ],
        }

        if self.repo_path:
            sarif["runs"][0]["originalUriBaseIds"] = {
                "%SRCROOT%": {
                    "uri": self.repo_path.resolve().as_uri() + "/",
                }
            }

        return sarif

    def _build_rule(self, level: str) -> Dict[str, Any]:
        return {
            "id": RULE_ID,
            "name": "CodeDuplication",
            "shortDescription": {"text": "Duplicated code block"},
            "fullDescription": {
                "text": (
                    "Blocks of consecutive lines that are structurally identical or highly "
                    "similar after comments, whitespace and identifier names are normalized."
                )
            },
            "defaultConfiguration": {"level": level},
            "properties": {"tags": ["maintenance", "technical-debt", "duplication"]},
        }

    def _build_result(self, group: DuplicateGroup, level: str) -> Dict[str, Any]:
        root = group.root
        similarity = group.similarity_percent
        others = group.members[1:]
        other_text = ", ".join(f"{b.source_id}:{b.start_line}-{b.end_line}" for b in others)

        return {
            "ruleId": RULE_ID,
            "level": level,
            "message": {
                "text": (
                    f"Found duplicated code ({similarity}% similar) at lines "
                    f"{root.start_line}-{root.end_line}; also at {other_text}"
                ),
            },
            "locations": [self._build_location(root)],
            "relatedLocations": [
                dict(self._build_location(block), id=index)
                for index, block in enumerate(others, start=1)
            ],
            "partialFingerprints": {
                "dupguard/block/v1": f"{root.source_id}:{root.start_line}",
            },
            "properties": {
                "similarity": similarity,
                "isSameFile": group.is_same_file,
                "fileCount": group.file_count,
                "blockCount": len(group.members),
            },
        }

    def _build_location(self, block: CodeBlock) -> Dict[str, Any]:
        return {
            "physicalLocation": {
                "artifactLocation": {
                    "uri": block.source_id,
                    "uriBaseId": "%SRCROOT%",
                },
                "region": {
                    "startLine": block.start_line,
                    "endLine": block.end_line,
                },
            }
        }

    def _build_notifications(self, result: ScanResult) -> List[Dict[str, Any]]:
        stats = result.stats
        notifications = [
            {
                "level": "note",
                "message": {
                    "text": (
                        f"Scan complete. {stats.sources_scanned} file(s), "
                        f"{stats.blocks_extracted} blocks, {len(result.groups)} duplicate group(s)"
                    )
                },
                "descriptor": {"id": "summary"},
            }
        ]
        if stats.degraded:
            notifications.append({
                "level": "warning",
                "message": {"text": "A resource ceiling was reached; results may be incomplete"},
                "descriptor": {"id": "resource-limit"},
            })
        return notifications
