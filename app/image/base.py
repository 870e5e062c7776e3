from abc import ABC, abstractmethod
from pathlib import Path


class BaseImageOptimizer(ABC):
    """Contract for re-encoding raw page bitmaps into the published format."""

    @abstractmethod
    def optimize(self, raw_path: Path, dest_path: Path, quality: int) -> None:
        """Re-encode ``raw_path`` into ``dest_path`` at a lossy quality (0-100).

        Must not delete ``raw_path``. ``dest_path`` either ends up complete or
        is not created at all.

        Raises:
            ImageOptimizationError: if the bitmap cannot be decoded or encoded.
        """
