import os
from pathlib import Path

from PIL import Image

from app.image.base import BaseImageOptimizer
from app.image.exceptions import ImageOptimizationError


class WebpOptimizer(BaseImageOptimizer):
    """Re-encodes bitmaps to lossy WebP using Pillow."""

    def __init__(self, method: int = 4) -> None:
        self._method = method

    def optimize(self, raw_path: Path, dest_path: Path, quality: int) -> None:
        if not 0 <= quality <= 100:
            raise ImageOptimizationError(f"WebP quality must be 0-100, got {quality}")
        tmp_path = dest_path.with_name(f".{dest_path.name}.tmp")
        try:
            with Image.open(raw_path) as image:
                if image.mode not in ("RGB", "RGBA"):
                    image = image.convert("RGB")
                image.save(tmp_path, format="WEBP", quality=quality, method=self._method)
            os.replace(tmp_path, dest_path)
        except Exception as exc:
            tmp_path.unlink(missing_ok=True)
            raise ImageOptimizationError(
                f"WebP encoding failed for {raw_path.name}: {exc}"
            ) from exc
