"""Base reporter interface for dupguard report generators."""

from abc import ABC, abstractmethod
from pathlib import Path

from dupguard.logging_config import get_logger
from dupguard.models import ScanResult

logger = get_logger(__name__)


class BaseReporter(ABC):
    """Abstract base class for report generators.

    Subclasses implement ``generate_string``; writing to a file is shared.
    """

    @abstractmethod
    def generate_string(self, result: ScanResult) -> str:
        """Render a scan result.

        Args:
            result: Groups and stats from one scan

        Returns:
            The full report text
        """
        pass

    def generate(self, result: ScanResult, output_path: Path) -> None:
        """Render a scan result into output_path.

        Args:
            result: Groups and stats from one scan
            output_path: Path to output file
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(self.generate_string(result), encoding="utf-8")
        logger.info(f"{type(self).__name__} report generated: {output_path}")
