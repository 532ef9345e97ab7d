"""
File-based evidence store: appended text logs and page screenshots.

Layout::

    <logging_directory>/<build_number>/<logging_directory_name>/
        <file>.txt
        screenshots/<d|m|y|H|M|S>|<label>.png
"""

import re
from datetime import datetime
from pathlib import Path
from typing import Callable

from webaccept.config.settings import Settings
from webaccept.core.interfaces import BrowserDriver, EvidenceSink
from webaccept.monitoring.logger import get_logger

SCREENSHOT_DIR = "screenshots"
LINE_TIME_FORMAT = "%d.%m.%Y %H:%M:%S"
SCREENSHOT_TIME_FORMAT = "%d|%m|%y|%H|%M|%S"
# Path separators and NUL cannot appear in a file name.
UNSAFE_LABEL_CHARS = re.compile(r"[/\\\x00]")
MAX_LABEL_LENGTH = 200


class FileEvidenceSink(EvidenceSink):
    """Evidence sink rooted under a run-specific directory."""

    def __init__(self, root: Path, now: Callable[[], datetime] = datetime.now) -> None:
        self.root = Path(root)
        self.now = now
        self.logger = get_logger("webaccept.evidence")

    @classmethod
    def from_settings(cls, settings: Settings) -> "FileEvidenceSink":
        return cls(settings.evidence_root)

    @property
    def screenshot_dir(self) -> Path:
        return self.root / SCREENSHOT_DIR

    def log_path(self, file: str, extension: str = "txt") -> Path:
        return self.root / f"{file}.{extension}"

    def log(self, message: str, file: str, extension: str = "txt") -> None:
        """
        Append one timestamped line to a log file.

        The file is opened per write so a crashed run never loses buffered lines.
        A write that fails (full disk, permissions) is reported and dropped.
        """
        path = self.log_path(file, extension)
        line = f"{self.now().strftime(LINE_TIME_FORMAT)} » {message}\n"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "a", encoding="utf-8") as f:
                f.write(line)
        except OSError as e:
            self.logger.warning(f"Evidence line could not be written to {path}: {e}")

    async def screenshot(self, driver: BrowserDriver, label: str = "undefined") -> str:
        """
        Capture the current page.

        Returns:
            Path of the written PNG file, or "" when it could not be stored
        """
        label = UNSAFE_LABEL_CHARS.sub("_", label)[:MAX_LABEL_LENGTH]
        name = f"{self.now().strftime(SCREENSHOT_TIME_FORMAT)}|{label}.png"
        path = self.screenshot_dir / name
        try:
            self.screenshot_dir.mkdir(parents=True, exist_ok=True)
            await driver.take_screenshot(path)
        except OSError as e:
            self.logger.warning(f"Screenshot could not be stored at {path}: {e}")
            return ""
        self.logger.debug(f"Screenshot saved to {path}")
        return str(path)
