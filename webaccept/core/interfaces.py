"""
Core interfaces and abstract base classes for the webaccept harness.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional, Tuple

from webaccept.core.types import (
    ElementState,
    Locator,
    PollOutcome,
    RunStatus,
    SelectMode,
    VerificationType,
)


class WebElement(ABC):
    """
    A remote element handle.

    Implementations raise the ``BrowserError`` family from
    ``webaccept.error_handling.exceptions`` instead of their native errors.
    """

    @abstractmethod
    async def click(self) -> None:
        """Click the element."""
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Clear the value of a text input or textarea."""
        pass

    @abstractmethod
    async def send_keys(self, value: str) -> None:
        """Type the given text into the element."""
        pass

    @abstractmethod
    async def get_attribute(self, name: str) -> Optional[str]:
        """Return an attribute value, or None when the attribute is absent."""
        pass

    @abstractmethod
    async def get_css_value(self, name: str) -> str:
        """Return the computed value of a CSS property."""
        pass

    @abstractmethod
    async def get_text(self) -> str:
        """Return the visible text of the element."""
        pass

    @abstractmethod
    async def get_tag_name(self) -> str:
        """Return the lower-case tag name."""
        pass

    @abstractmethod
    async def is_displayed(self) -> bool:
        pass

    @abstractmethod
    async def is_enabled(self) -> bool:
        pass

    @abstractmethod
    async def is_selected(self) -> bool:
        pass

    @abstractmethod
    async def get_location(self) -> Tuple[int, int]:
        """Return the (x, y) page location of the element."""
        pass

    @abstractmethod
    async def select(self, mode: SelectMode, value: Any) -> None:
        """Choose an option of a select element."""
        pass

    @abstractmethod
    async def hover(self) -> None:
        """Move the mouse pointer over the element."""
        pass


class BrowserDriver(ABC):
    """Abstract interface for the remote browser-automation session."""

    @abstractmethod
    async def start(self) -> None:
        """Establish the session. Raises ``SessionError`` on failure."""
        pass

    @abstractmethod
    async def stop(self) -> None:
        """Close the session and release its resources."""
        pass

    @abstractmethod
    async def find_element(
        self, locator: Locator, context: Optional[WebElement] = None
    ) -> WebElement:
        """
        Resolve a single element.

        Args:
            locator: Strategy and value to search by
            context: Optional element to scope the search to

        Raises:
            ElementNotFoundError: If nothing matches
        """
        pass

    @abstractmethod
    async def find_elements(
        self, locator: Locator, context: Optional[WebElement] = None
    ) -> List[WebElement]:
        """Resolve all matching elements in document order."""
        pass

    @abstractmethod
    async def get(self, url: str) -> None:
        """Navigate to a URL."""
        pass

    @abstractmethod
    async def execute_script(self, script: str, *args: Any) -> Any:
        """Evaluate JavaScript in the current page."""
        pass

    @abstractmethod
    async def take_screenshot(self, path: Path) -> None:
        """Write a PNG screenshot of the current page to ``path``."""
        pass

    @abstractmethod
    async def get_current_url(self) -> str:
        pass


class EvidenceSink(ABC):
    """Durable text log and screenshot store for one suite run."""

    @abstractmethod
    def log(self, message: str, file: str, extension: str = "txt") -> None:
        """Append a timestamped line to the named log file."""
        pass

    @abstractmethod
    async def screenshot(self, driver: BrowserDriver, label: str = "undefined") -> str:
        """Capture the current page and return the screenshot file name."""
        pass


class RunRecorder(ABC):
    """Relational log of suite and case lifecycle plus case errors."""

    @abstractmethod
    def start_suite(self) -> Optional[int]:
        """Insert a pending suite row and return its id."""
        pass

    @abstractmethod
    def end_suite(self, status: RunStatus) -> None:
        pass

    @abstractmethod
    def start_case(self, name: str) -> Optional[int]:
        """Insert a pending case row under the current suite and return its id."""
        pass

    @abstractmethod
    def end_case(self, status: RunStatus) -> None:
        pass

    @abstractmethod
    def case_error(self, message: str, error_url: str, screenshot_url: str) -> None:
        pass

    @abstractmethod
    def init_error(self) -> None:
        """Record a failed suite whose browser session never came up."""
        pass

    def close(self) -> None:
        """Release the backing connection."""
        return None


# Capability interfaces implemented by the action facade.

Predicate = Callable[[], Awaitable[bool]]


class Navigator(ABC):
    @abstractmethod
    async def open_url(self, url: str) -> None:
        pass

    @abstractmethod
    async def open_base_url(self, *segments: str) -> None:
        pass

    @abstractmethod
    async def scroll_to(self, x_pos: int = 0, y_pos: int = 0) -> None:
        pass

    @abstractmethod
    async def scroll_to_element(self, element: Optional[WebElement]) -> None:
        pass


class Clicker(ABC):
    @abstractmethod
    async def click(
        self,
        element: Optional[WebElement],
        retry: bool = False,
        ignore_exception: bool = False,
    ) -> None:
        pass

    @abstractmethod
    async def click_by(
        self, locator: Locator, retry: bool = False, ignore_exception: bool = False
    ) -> None:
        pass


class Typer(ABC):
    @abstractmethod
    async def type(self, element: Optional[WebElement], value: str, clear: bool = True) -> None:
        pass

    @abstractmethod
    async def type_by(self, locator: Locator, value: str, clear: bool = True) -> None:
        pass


class Selector(ABC):
    @abstractmethod
    async def select_by(
        self, locator: Locator, value: Any, mode: SelectMode, attempts: int = 2
    ) -> None:
        pass

    @abstractmethod
    async def expect_select_by(
        self, locator: Locator, value: Any, mode: SelectMode, attempts: int = 2
    ) -> bool:
        pass


class Inspector(ABC):
    @abstractmethod
    async def is_element(
        self, state: ElementState, locator: Locator, context: Optional[WebElement] = None
    ) -> bool:
        pass

    @abstractmethod
    async def expects_to_be(
        self,
        state: ElementState,
        locator: Locator,
        attempts: int = 2,
        parent: Optional[Locator] = None,
    ) -> bool:
        pass


class Verifier(ABC):
    @abstractmethod
    async def verify_by(
        self, locator: Locator, expectation: Any, type: Any, attempts: int = 2
    ) -> bool:
        pass

    @abstractmethod
    async def verify_regex_by(
        self, locator: Locator, pattern: str, type: Any, attempts: int = 2
    ) -> bool:
        pass


class Waiter(ABC):
    @abstractmethod
    async def wait_until(
        self,
        predicate: Predicate,
        message: str,
        timeout: float = 30,
        interval: int = 250,
    ) -> PollOutcome:
        pass

    @abstractmethod
    async def wait_until_element_is(
        self,
        state: ElementState,
        locator: Locator,
        timeout: float = 30,
        interval: int = 250,
        expected: bool = True,
    ) -> PollOutcome:
        pass
