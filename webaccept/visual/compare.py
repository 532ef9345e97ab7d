"""
Screenshot comparison against expected reference images.
"""

from pathlib import Path
from typing import Optional

from PIL import Image, ImageChops

from webaccept.config.settings import Settings
from webaccept.monitoring.logger import get_logger

DIFF_FRAME_MS = 700


class ImageComparer:
    """Compares page captures with expected images of one branch and suite."""

    def __init__(self, compare_root: Path, diff_root: Path, branch: str, suite_name: str) -> None:
        sub_path = Path(branch.replace(" ", "")) / suite_name.replace(" ", "")
        self.expected_dir = Path(compare_root) / sub_path
        self.diff_dir = Path(diff_root) / sub_path
        self.logger = get_logger("webaccept.visual")

    @classmethod
    def from_settings(cls, settings: Settings) -> "ImageComparer":
        return cls(
            settings.compare_image_dir,
            settings.diff_image_dir,
            settings.branch,
            settings.suite_name,
        )

    def expected_path(self, name: str) -> Path:
        self.expected_dir.mkdir(parents=True, exist_ok=True)
        return self.expected_dir / f"{name}.png"

    def capture_path(self, name: str) -> Path:
        """Scratch file for the fresh capture compared against ``name``."""
        self.diff_dir.mkdir(parents=True, exist_ok=True)
        return self.diff_dir / f"{name}.actual.png"

    def diff_path(self, name: str) -> Path:
        self.diff_dir.mkdir(parents=True, exist_ok=True)
        return self.diff_dir / f"{name}.gif"

    def compare(self, expected: Path, actual: Path, name: str) -> Optional[Path]:
        """
        Compare two images pixel by pixel.

        Args:
            expected: Reference image
            actual: Fresh capture
            name: Base name of the difference file

        Returns:
            None when the images are equal, otherwise the path of an animated
            GIF alternating between both images
        """
        with Image.open(expected) as expected_img, Image.open(actual) as actual_img:
            first = expected_img.convert("RGB")
            second = actual_img.convert("RGB")

        if first.size == second.size and ImageChops.difference(first, second).getbbox() is None:
            return None

        if first.size != second.size:
            self.logger.info(f"Image sizes differ: {first.size} != {second.size}")
            second = second.resize(first.size)

        path = self.diff_path(name)
        first.save(
            path,
            save_all=True,
            append_images=[second],
            duration=DIFF_FRAME_MS,
            loop=0,
        )
        self.logger.info(f"Image difference written to {path}")
        return path
