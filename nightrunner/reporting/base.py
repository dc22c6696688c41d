"""Abstract base class for report writers."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path
from typing import Literal

from nightrunner.results import Results


class ReportWriter(ABC):
    """Serializes a run's results to disk."""

    @abstractmethod
    async def write(
        self, results: Results, output_folder: Path | Literal[False] | None
    ) -> Sequence[Path]:
        """Write reports for all recorded modules.

        Args:
            results: Results of the finished run
            output_folder: Root folder for reports, False to skip writing, or
                None for flat files under the default folder

        Returns:
            Paths of the files written

        """
