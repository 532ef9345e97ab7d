"""
Test case lifecycle.

A case runs its body through the action facade. Any failure, whether reported
explicitly or raised by the driver, goes through one guarded path that produces
exactly one evidence bundle per case run.
"""

import inspect
import random
import re
import string
import traceback
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from webaccept.core.timer import Timer
from webaccept.core.types import CaseError, CaseRun, EvidenceBundle, RunStatus
from webaccept.emulator.client import ActionFacade
from webaccept.error_handling.exceptions import BrowserError, ConfigurationError
from webaccept.monitoring.logger import get_logger

if TYPE_CHECKING:
    from webaccept.orchestration.suite import TestSuite

ERRORS_LOG = "errors"
OUTPUT_LOG = "log"
DIGEST_TIME_FORMAT = "%d.%m.%Y %H:%M:%S"

_CAMEL_PATTERNS = (
    re.compile(r"([a-z\d])([A-Z])"),
    re.compile(r"([^_\s])([A-Z][a-z])"),
)


def camel_to_sentence(text: str) -> str:
    """``clickTheSaveButton`` -> ``click the save button``."""
    for pattern in _CAMEL_PATTERNS:
        text = pattern.sub(r"\1 \2", text)
    return text.lower()


def random_alphabetic_letters(length: int = 1, case: Optional[str] = None) -> str:
    """
    Random ASCII letters.

    Args:
        length: Number of letters
        case: "upper", "lower", or None for mixed case
    """
    letters = []
    for _ in range(length):
        letter = random.choice(string.ascii_lowercase)
        if case == "upper" or (case is None and random.randint(0, 1)):
            letter = letter.upper()
        letters.append(letter)
    return "".join(letters)


class TestCase(ABC):
    """Base class of every acceptance test case."""

    __test__ = False

    def __init__(self, suite: "TestSuite", client: ActionFacade) -> None:
        self.suite = suite
        self.client = client
        self.failure: Optional[EvidenceBundle] = None
        self.logger = get_logger(
            f"webaccept.case.{self.case_name}",
            suite=suite.settings.suite_name,
            case=self.case_name,
        )

    @property
    def case_name(self) -> str:
        return type(self).__name__

    @abstractmethod
    async def _run(self) -> None:
        """Case body."""
        pass

    def is_failed(self) -> bool:
        return self.client.is_failed()

    async def run(self) -> CaseRun:
        """
        Execute the case and record its outcome.

        Raises:
            ConfigurationError: Defects in the case code are never swallowed
        """
        self.failure = None
        self.client.attach(self)
        self.client.reset()

        record = CaseRun(name=self.case_name, suite_run_id=self.suite.suite_run.run_id)
        timer = Timer().start()
        record.run_id = self.suite.recorder.start_case(self.case_name)

        self.output(f"\nStart of {self.case_name}!")
        try:
            await self._run()
        except ConfigurationError:
            raise
        except Exception as e:
            await self._handle_unexpected_exception(e)

        failed = self.is_failed()
        if not failed:
            self.output(f"{self.case_name} successful!")

        record.status = RunStatus.FAILED if failed else RunStatus.PASSED
        record.ended_at = datetime.now(timezone.utc)
        record.elapsed_seconds = timer.elapsed()
        if self.failure is not None:
            record.error = CaseError(
                case_run_id=record.run_id,
                message=self.failure.message,
                error_url=self.failure.error_url,
                screenshot=self.failure.screenshot,
            )
        self.suite.recorder.end_case(record.status)
        return record

    async def error(self, message: str, error_image: Optional[str] = None) -> None:
        """Fail the case; ignored when the case already failed."""
        if self.is_failed():
            return
        await self._log_failure(message, None, error_image)

    async def exception_error(
        self, message: str, error: BaseException, error_image: Optional[str] = None
    ) -> None:
        """Fail the case because of an exception; ignored when already failed."""
        if self.is_failed():
            return
        await self._log_failure(message, error, error_image)

    def output(self, message: str, camel_case_to_human: bool = False) -> None:
        settings = self.suite.settings
        if settings.log_displayed:
            self.logger.info(camel_to_sentence(message) if camel_case_to_human else message)
        if settings.log_stored:
            self._store(message, OUTPUT_LOG)

    def _store(self, message: str, file: str) -> None:
        """Append to an evidence file; a failing sink never stops the run."""
        try:
            self.suite.evidence.log(message, file)
        except OSError as e:
            self.logger.warning(f"Evidence could not be written to {file}: {e}")

    @staticmethod
    def random_alphabetic_letters(length: int = 1, case: Optional[str] = None) -> str:
        return random_alphabetic_letters(length, case)

    async def _handle_unexpected_exception(self, error: Exception) -> None:
        frames = traceback.extract_tb(error.__traceback__)
        origin = frames[-1] if frames else None
        if origin is not None:
            message = (
                f"Unexpected {type(error).__name__} thrown by {origin.name} on line {origin.lineno}"
            )
        else:
            message = f"Unexpected {type(error).__name__} thrown"
        await self.exception_error(message, error)

    async def _log_failure(
        self,
        message: str,
        error: Optional[BaseException],
        error_image: Optional[str],
    ) -> None:
        # Trip first: a sink error below must never re-enter this path.
        self.client.failed()
        self.output(message)
        method = self._invoked_by(error)
        screen_message = "".join(word[:1].upper() + word[1:] for word in message.split(" "))

        if error is not None:
            error_name = type(error).__name__
            screen_name = f"{self.case_name} | {method} | {screen_message} | {error_name}"
            trace = "".join(traceback.format_exception(type(error), error, error.__traceback__))
            text = f"{self.case_name} | {method} | {message} | {error_name}\n{error}\n{trace}"
        else:
            screen_name = f"{self.case_name} | {method} | {screen_message}"
            trace = "".join(traceback.format_stack())
            text = f"{self.case_name} | {method} | {message}\n{trace}"

        screenshot = error_image or ""
        if not screenshot:
            try:
                screenshot = await self.suite.evidence.screenshot(
                    self.suite.driver, screen_name.replace(" ", "")
                )
            except BrowserError as e:
                text += (
                    "Failed to take a screen shot, additional error information:"
                    f"\nMessage:\t{e.message}\n"
                )
            except OSError as e:
                text += (
                    "Failed to store the screen shot, additional error information:"
                    f"\nMessage:\t{e}\n"
                )

        self._store(text, ERRORS_LOG)

        try:
            error_url = await self.suite.driver.get_current_url()
        except BrowserError:
            error_url = ""

        self.suite.recorder.case_error(message, error_url, screenshot)
        self.failure = EvidenceBundle(
            message=message, trace=text, screenshot=screenshot, error_url=error_url
        )
        self._add_error_messages(method, error_url, screenshot, text)
        self.output("TestCaseFailed! ...")

    def _add_error_messages(self, method: str, error_url: str, screenshot: str, text: str) -> None:
        settings = self.suite.settings
        for line in (
            f"Branch: {settings.branch}",
            f"Build number: {settings.build_number}",
            f"Suite name: {settings.suite_name}",
            f"Case: {self.case_name}",
            f"Test method: {method}",
            f"Failure url: {error_url}",
            "",
            f"Error Message: \n{text}",
            f"Error time: {datetime.now().strftime(DIGEST_TIME_FORMAT)}",
            f"Screenshot: {screenshot}",
            f"Logfile: {self.suite.error_log_path}",
            "",
        ):
            self.suite.add_error_message(line)

    def _invoked_by(self, error: Optional[BaseException] = None) -> str:
        """Name of the case method that led to the failure."""
        try:
            case_file = inspect.getfile(type(self))
        except TypeError:
            return "_run"

        if error is not None:
            names = [
                frame.name
                for frame in traceback.extract_tb(error.__traceback__)
                if frame.filename == case_file
            ]
        else:
            names = [
                frame.function
                for frame in reversed(inspect.stack(context=0))
                if frame.filename == case_file
            ]
        return names[-1] if names else "_run"
