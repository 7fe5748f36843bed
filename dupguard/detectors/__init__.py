"""Duplication detectors: rule mode and batch mode adapters over the engine."""

from dupguard.detectors.base import DuplicationDetector, parse_severity
from dupguard.detectors.batch import CrossFileDuplicationDetector
from dupguard.detectors.rule import RULE_MESSAGE, SingleFileDuplicationRule

__all__ = [
    "CrossFileDuplicationDetector",
    "DuplicationDetector",
    "RULE_MESSAGE",
    "SingleFileDuplicationRule",
    "parse_severity",
]
