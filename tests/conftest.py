"""
Shared fixtures: an in-memory browser, evidence and run recorder.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest

from webaccept.config.settings import Settings
from webaccept.core.interfaces import BrowserDriver, EvidenceSink, RunRecorder, WebElement
from webaccept.core.latch import FailureLatch
from webaccept.core.types import Locator, RunStatus, SelectMode
from webaccept.error_handling.exceptions import ElementNotFoundError
from webaccept.error_handling.recovery import RetryPoller, RetryPolicy
from webaccept.orchestration.factory import SuiteFactory


class StubElement(WebElement):
    """Element with canned facts; queued errors are raised per method."""

    def __init__(
        self,
        tag: str = "div",
        text: str = "",
        attributes: Optional[Dict[str, str]] = None,
        css: Optional[Dict[str, str]] = None,
        displayed: bool = True,
        enabled: bool = True,
        selected: bool = False,
        location: Tuple[int, int] = (0, 0),
    ):
        self.tag = tag
        self.text = text
        self.attributes = dict(attributes or {})
        self.css = dict(css or {})
        self.displayed = displayed
        self.enabled = enabled
        self.selected = selected
        self.location = location
        self.calls: List[tuple] = []
        self.errors: Dict[str, List[Exception]] = {}

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name,) + args)
        queue = self.errors.get(name)
        if queue:
            raise queue.pop(0)

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    async def click(self) -> None:
        self._record("click")

    async def clear(self) -> None:
        self._record("clear")

    async def send_keys(self, value: str) -> None:
        self._record("send_keys", value)

    async def get_attribute(self, name: str) -> Optional[str]:
        self._record("get_attribute", name)
        return self.attributes.get(name)

    async def get_css_value(self, name: str) -> str:
        self._record("get_css_value", name)
        return self.css.get(name, "")

    async def get_text(self) -> str:
        self._record("get_text")
        return self.text

    async def get_tag_name(self) -> str:
        self._record("get_tag_name")
        return self.tag

    async def is_displayed(self) -> bool:
        self._record("is_displayed")
        return self.displayed

    async def is_enabled(self) -> bool:
        self._record("is_enabled")
        return self.enabled

    async def is_selected(self) -> bool:
        self._record("is_selected")
        return self.selected

    async def get_location(self) -> Tuple[int, int]:
        self._record("get_location")
        return self.location

    async def select(self, mode: SelectMode, value: Any) -> None:
        self._record("select", mode, value)

    async def hover(self) -> None:
        self._record("hover")


class StubDriver(BrowserDriver):
    """Browser session over a locator -> element table."""

    def __init__(self, elements: Optional[Dict[Locator, Any]] = None, url: str = "http://localhost/"):
        self.elements: Dict[Locator, Any] = dict(elements or {})
        self.url = url
        self.calls: List[tuple] = []
        self.started = False
        self.start_error: Optional[Exception] = None
        self.lookup_errors: Dict[Locator, List[Exception]] = {}
        self.get_errors: List[Exception] = []
        self.screenshot_image = None

    def names(self) -> List[str]:
        return [call[0] for call in self.calls]

    async def start(self) -> None:
        self.calls.append(("start",))
        if self.start_error is not None:
            raise self.start_error
        self.started = True

    async def stop(self) -> None:
        self.calls.append(("stop",))
        self.started = False

    async def find_element(self, locator: Locator, context: Optional[WebElement] = None) -> WebElement:
        self.calls.append(("find_element", locator, context))
        queue = self.lookup_errors.get(locator)
        if queue:
            raise queue.pop(0)
        found = self.elements.get(locator)
        if not found:
            raise ElementNotFoundError(f"No element matches {locator}", selector=str(locator))
        return found[0] if isinstance(found, list) else found

    async def find_elements(self, locator: Locator, context: Optional[WebElement] = None) -> List[WebElement]:
        self.calls.append(("find_elements", locator, context))
        found = self.elements.get(locator)
        if found is None:
            return []
        return list(found) if isinstance(found, list) else [found]

    async def get(self, url: str) -> None:
        self.calls.append(("get", url))
        if self.get_errors:
            raise self.get_errors.pop(0)
        self.url = url

    async def execute_script(self, script: str, *args: Any) -> Any:
        self.calls.append(("execute_script", script) + args)
        return None

    async def take_screenshot(self, path: Path) -> None:
        self.calls.append(("take_screenshot", path))
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        if self.screenshot_image is not None:
            self.screenshot_image.save(path)
        else:
            path.write_bytes(b"")

    async def get_current_url(self) -> str:
        self.calls.append(("get_current_url",))
        return self.url


class MemoryEvidence(EvidenceSink):
    """Evidence sink keeping lines and screenshot labels in memory."""

    def __init__(self):
        self.lines: Dict[str, List[str]] = {}
        self.screenshots: List[str] = []

    def log(self, message: str, file: str, extension: str = "txt") -> None:
        self.lines.setdefault(file, []).append(message)

    async def screenshot(self, driver: BrowserDriver, label: str = "undefined") -> str:
        self.screenshots.append(label)
        return f"shot-{len(self.screenshots)}.png"


class RecordingRecorder(RunRecorder):
    """Run recorder keeping the sequence of lifecycle events."""

    def __init__(self):
        self.events: List[tuple] = []
        self._next_id = 0

    def _id(self) -> int:
        self._next_id += 1
        return self._next_id

    def start_suite(self) -> Optional[int]:
        self.events.append(("start_suite",))
        return self._id()

    def end_suite(self, status: RunStatus) -> None:
        self.events.append(("end_suite", status))

    def start_case(self, name: str) -> Optional[int]:
        self.events.append(("start_case", name))
        return self._id()

    def end_case(self, status: RunStatus) -> None:
        self.events.append(("end_case", status))

    def case_error(self, message: str, error_url: str, screenshot_url: str) -> None:
        self.events.append(("case_error", message, error_url, screenshot_url))

    def init_error(self) -> None:
        self.events.append(("init_error",))

    def close(self) -> None:
        self.events.append(("close",))

    def names(self) -> List[str]:
        return [event[0] for event in self.events]


class FakeClock:
    """Monotonic clock advanced only by its own sleep."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def settings(tmp_path):
    """Settings isolated from the environment and the working directory."""
    return Settings(
        _env_file=None,
        base_url="http://shop.test",
        web_app="store",
        cases_package="",
        branch="feature x",
        build_number="42",
        suite_name="Smoke Suite",
        logging_directory=tmp_path / "logs",
        database_path=None,
        compare_image_dir=tmp_path / "compare",
        diff_image_dir=tmp_path / "diff",
        wait_timeout=1,
        wait_interval=100,
        log_displayed=False,
        log_stored=False,
    )


@pytest.fixture
def driver():
    return StubDriver()


@pytest.fixture
def evidence():
    return MemoryEvidence()


@pytest.fixture
def recorder():
    return RecordingRecorder()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def latch():
    return FailureLatch()


@pytest.fixture
def poller(driver, latch, evidence, clock):
    return RetryPoller(
        driver, latch, evidence, RetryPolicy(max_attempts=2), clock=clock, sleep=clock.sleep
    )


@pytest.fixture
def client(settings, driver, latch, evidence, poller):
    return SuiteFactory(settings).create_client(driver, latch, evidence, poller)
