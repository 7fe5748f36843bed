"""Report generators for dupguard."""

from .base_reporter import BaseReporter
from .console_reporter import ConsoleReporter
from .json_reporter import JSONReporter
from .sarif_reporter import SARIFReporter

REPORTERS = {
    "console": ConsoleReporter,
    "json": JSONReporter,
    "sarif": SARIFReporter,
}

__all__ = [
    "BaseReporter",
    "ConsoleReporter",
    "JSONReporter",
    "REPORTERS",
    "SARIFReporter",
]
