"""
Action facade through which test cases drive the browser.

Every mutating or verifying operation starts with a guard on the shared failure
latch. Once a case has failed, the remaining calls return their no-op result
without a single remote round-trip, so the case body runs dry instead of
throwing through user code.
"""

import re
from typing import TYPE_CHECKING, Any, List, Optional, Pattern, Union

from webaccept.config.settings import Settings
from webaccept.core.interfaces import (
    BrowserDriver,
    Clicker,
    EvidenceSink,
    Inspector,
    Navigator,
    Predicate,
    Selector,
    Typer,
    Verifier,
    Waiter,
    WebElement,
)
from webaccept.core.latch import FailureLatch
from webaccept.core.types import (
    ElementState,
    Locator,
    PollOutcome,
    SelectMode,
    VerificationKind,
    VerificationType,
)
from webaccept.emulator.locator import ElementLocator
from webaccept.error_handling.exceptions import (
    BrowserError,
    ConfigurationError,
    ElementStateError,
    StaleElementError,
    WaitTimeoutError,
)
from webaccept.error_handling.recovery import RetryPoller, RetryPolicy
from webaccept.monitoring.logger import get_logger
from webaccept.visual.compare import ImageComparer

if TYPE_CHECKING:
    from webaccept.orchestration.case import TestCase

CLICK_POLICY = RetryPolicy(max_attempts=20, retryable=(BrowserError,))
CLEAR_POLICY = RetryPolicy(max_attempts=50, retryable=(StaleElementError, ElementStateError))
SELECT_POLICY = RetryPolicy(max_attempts=50, retryable=(StaleElementError,))
SOFT_POLICY = RetryPolicy(max_attempts=2, retryable=(BrowserError,))

SCRIPT_TIMEOUT_LOG = "scriptTimeoutException"

REGEX_DELIMITED = re.compile(r"^([^\w\s\\])(.*)\1([imsxu]*)$", re.S)
REGEX_FLAGS = {"i": re.I, "m": re.M, "s": re.S, "x": re.X, "u": 0}

MODE_LABELS = {
    SelectMode.INDEX: "index",
    SelectMode.VALUE: "value",
    SelectMode.VISIBLE_TEXT: "visible text",
}


def compile_pattern(pattern: Union[str, Pattern]) -> Pattern:
    """
    Compile a verification pattern.

    Delimited patterns such as ``/^Sav/i`` are unwrapped and their trailing
    flags applied; anything else is compiled as a plain Python pattern.
    """
    if isinstance(pattern, re.Pattern):
        return pattern
    match = REGEX_DELIMITED.match(pattern)
    if not match:
        return re.compile(pattern)
    flags = 0
    for flag in match.group(3):
        flags |= REGEX_FLAGS[flag]
    return re.compile(match.group(2), flags)


def coerce_state(state: Any) -> ElementState:
    try:
        return ElementState(state)
    except ValueError:
        raise ConfigurationError(
            f'The state has to be "displayed", "enabled" or "selected", got "{state}"'
        ) from None


def coerce_mode(mode: Any) -> SelectMode:
    try:
        return SelectMode(mode)
    except ValueError:
        raise ConfigurationError(
            f'The select mode has to be "index", "value" or "visibleText", got "{mode}"'
        ) from None


async def read_state(element: WebElement, state: ElementState) -> bool:
    if state is ElementState.DISPLAYED:
        return await element.is_displayed()
    if state is ElementState.ENABLED:
        return await element.is_enabled()
    return await element.is_selected()


async def read_fact(element: WebElement, verification: VerificationType) -> Optional[str]:
    kind = verification.kind
    if kind is VerificationKind.TEXT:
        return await element.get_text()
    if kind is VerificationKind.ID:
        return await element.get_attribute("id")
    if kind is VerificationKind.TAG_NAME:
        return await element.get_tag_name()
    if kind is VerificationKind.ATTRIBUTE:
        return await element.get_attribute(verification.name)
    return await element.get_css_value(verification.name)


async def describe_element(element: WebElement) -> str:
    """Render an element as a short HTML-like tag for the action narration."""
    try:
        parts = []
        for name in ("id", "class"):
            value = await element.get_attribute(name)
            if value and value.strip():
                parts.append(f' {name}="{value.strip()}"')
        if await element.get_attribute("disabled") is not None:
            parts.append(" disabled")
        href = await element.get_attribute("href")
        if href and href.strip():
            parts.append(f' href="{href.strip()}"')
        tag = await element.get_tag_name()
        text = await element.get_text()
    except BrowserError as e:
        return f"<element unavailable: {type(e).__name__}>"
    return f"<{tag}{''.join(parts)}>{text}</{tag}>"


class ActionFacade(Navigator, Clicker, Typer, Selector, Inspector, Verifier, Waiter):
    """The single gateway for browser actions of a test case."""

    def __init__(
        self,
        driver: BrowserDriver,
        locator: ElementLocator,
        poller: RetryPoller,
        settings: Settings,
        evidence: Optional[EvidenceSink] = None,
        comparer: Optional[ImageComparer] = None,
    ) -> None:
        self.driver = driver
        self.locator = locator
        self.poller = poller
        self.settings = settings
        self.evidence = evidence
        self.comparer = comparer or ImageComparer.from_settings(settings)
        self.case: Optional["TestCase"] = None
        self.logger = get_logger("webaccept.client")

    @property
    def latch(self) -> FailureLatch:
        return self.locator.latch

    # Failure state

    def attach(self, case: Optional["TestCase"]) -> None:
        """Bind the running case to the facade and its locator."""
        self.case = case
        self.locator.attach(case)

    def is_failed(self) -> bool:
        return self.latch.tripped

    def failed(self) -> None:
        """Trip the latch; the deactivation notice is only written once."""
        if self.latch.trip("Client"):
            self.output("Client deactivated ...")

    def reset(self) -> None:
        """Clear the failure state of the facade and its locator."""
        was_failed = self.is_failed()
        self.locator.reset()
        if was_failed:
            self.output("\nClient reset ...")

    def output(self, message: str) -> None:
        if self.case is not None:
            self.case.output(message)
        else:
            self.logger.info(message)

    async def error(self, message: str) -> None:
        if self.case is not None:
            await self.case.error(message)
        else:
            self.logger.error(message)
        self.failed()

    async def exception_error(self, message: str, error: BaseException) -> None:
        if self.case is not None:
            await self.case.exception_error(message, error)
        else:
            self.logger.error(f"{message} ({type(error).__name__})")
        self.failed()

    # Navigation

    async def open_url(self, url: str) -> None:
        if self.is_failed():
            return
        if not await self.expect_open_url(url):
            await self.error(f'Failed to open url "{url}"')

    async def expect_open_url(self, url: str, attempts: Optional[int] = None) -> bool:
        """Navigate with retries, False when every attempt failed."""
        if self.is_failed():
            return False
        outcome = await self.poller.attempt(
            lambda: self.driver.get(url),
            attempts=attempts or self.settings.open_url_attempts,
            description=f'open url "{url}"',
            policy=SOFT_POLICY,
            log_file=SCRIPT_TIMEOUT_LOG,
        )
        return outcome.succeeded

    async def open_base_url(self, *segments: str) -> None:
        """Open ``<base_url>/<web_app>/<segment>/...``."""
        url = "/".join([self.settings.application_url] + [s.strip("/") for s in segments if s])
        self.output(f"Open url|\t{url}")
        await self.open_url(url)

    async def scroll_to(self, x_pos: int = 0, y_pos: int = 0) -> None:
        if self.is_failed():
            return
        await self.driver.execute_script(
            "window.scrollTo(arguments[0], arguments[1]);", int(x_pos), int(y_pos)
        )

    async def scroll_to_element(self, element: Optional[WebElement]) -> None:
        """Scroll the element into view, shifted by the configured offsets."""
        if self.is_failed() or element is None:
            return
        x_pos, y_pos = await element.get_location()
        await self.scroll_to(
            x_pos - self.settings.scroll_x_offset, y_pos - self.settings.scroll_y_offset
        )

    # Element getters

    async def get_by(self, locator: Locator, attempts: Optional[int] = None) -> Optional[WebElement]:
        """Hard lookup with retries; reports a failure when nothing is found."""
        if self.is_failed():
            return None
        element = await self.try_get_by(locator, attempts)
        if element is None and not self.is_failed():
            await self.error(f'Failed to get element by {locator.strategy.value} "{locator.value}"')
        return element

    async def try_get_by(self, locator: Locator, attempts: Optional[int] = None) -> Optional[WebElement]:
        if self.is_failed():
            return None
        return await self.poller.lookup_with_retries(
            locator, attempts=attempts or self.settings.lookup_attempts
        )

    async def try_get_all_by(self, locator: Locator, attempts: Optional[int] = None) -> List[WebElement]:
        if self.is_failed():
            return []
        return await self.poller.lookup_all_with_retries(
            locator, attempts=attempts or self.settings.lookup_attempts
        )

    # Clicking

    async def click(
        self,
        element: Optional[WebElement],
        retry: bool = False,
        ignore_exception: bool = False,
    ) -> None:
        """
        Click an element.

        Args:
            element: Element to click; None is a silent no-op
            retry: Retry up to 20 times on driver errors
            ignore_exception: Swallow the last error once retries are exhausted
        """
        if self.is_failed() or element is None:
            return
        self.output(f"Click\t|\t{await describe_element(element)}")

        if not retry:
            await element.click()
            return

        outcome = await self.poller.attempt(element.click, description="click", policy=CLICK_POLICY)
        if not outcome.succeeded and outcome.last_error is not None and not ignore_exception:
            raise outcome.last_error

    async def click_by(
        self, locator: Locator, retry: bool = False, ignore_exception: bool = False
    ) -> None:
        if self.is_failed():
            return
        await self.click(await self.locator.find(locator), retry, ignore_exception)

    async def try_click_by(
        self, locator: Locator, retry: bool = False, ignore_exception: bool = False
    ) -> None:
        if self.is_failed():
            return
        await self.click(await self.locator.try_find(locator), retry, ignore_exception)

    async def click_id(self, element_id: str, retry: bool = False, ignore_exception: bool = False) -> None:
        await self.click_by(Locator.id(element_id), retry, ignore_exception)

    async def try_click_id(self, element_id: str, retry: bool = False, ignore_exception: bool = False) -> None:
        await self.try_click_by(Locator.id(element_id), retry, ignore_exception)

    async def expect_click(self, locator: Locator, attempts: int = 2) -> bool:
        """Soft click, False when no attempt succeeded."""
        if self.is_failed():
            return False

        async def find_and_click() -> None:
            element = await self.driver.find_element(locator)
            self.output(f"Click\t|\t{await describe_element(element)}")
            await element.click()

        outcome = await self.poller.attempt(
            find_and_click,
            attempts=attempts,
            description=f'click an element by {locator.strategy.value} "{locator.value}"',
            policy=SOFT_POLICY,
        )
        return outcome.succeeded

    # Typing

    async def type(self, element: Optional[WebElement], value: str, clear: bool = True) -> None:
        """Type into an element, clearing it first unless told otherwise."""
        if self.is_failed() or element is None:
            return
        tag = await describe_element(element)
        if clear:
            await self.poller.attempt(element.clear, description="clear", policy=CLEAR_POLICY)
            self.output(f"Clear\t|\t{tag}")
        self.output(f"Type\t|\t{tag}\t= {value}")
        await element.send_keys(str(value))

    async def type_by(self, locator: Locator, value: str, clear: bool = True) -> None:
        if self.is_failed():
            return
        await self.type(await self.locator.find(locator), value, clear)

    async def type_id(self, element_id: str, value: str, clear: bool = True) -> None:
        await self.type_by(Locator.id(element_id), value, clear)

    async def expect_type(
        self, locator: Locator, value: str, clear: bool = False, attempts: int = 2
    ) -> bool:
        """Soft typing, False when no attempt succeeded."""
        if self.is_failed():
            return False

        async def find_and_type() -> None:
            element = await self.driver.find_element(locator)
            if clear:
                await element.clear()
            self.output(f"Type\t|\t{await describe_element(element)}\t= {value}")
            await element.send_keys(str(value))

        outcome = await self.poller.attempt(
            find_and_type,
            attempts=attempts,
            description=f'type on an element by {locator.strategy.value} "{locator.value}"',
            policy=SOFT_POLICY,
        )
        return outcome.succeeded

    # Selecting

    async def expect_select_by(
        self, locator: Locator, value: Any, mode: SelectMode, attempts: int = 2
    ) -> bool:
        """Soft select, False when no attempt succeeded."""
        mode = coerce_mode(mode)
        if self.is_failed():
            return False

        async def find_and_select() -> None:
            element = await self.driver.find_element(locator)
            await element.select(mode, value)
            self.output(
                f'Select\t|\tElement by {locator.strategy.value} "{locator.value}" '
                f'with {mode.value} "{value}"'
            )

        outcome = await self.poller.attempt(
            find_and_select,
            attempts=attempts,
            description=f'select element by {locator.strategy.value} "{locator.value}"',
            policy=SOFT_POLICY,
        )
        return outcome.succeeded

    async def select_by(
        self, locator: Locator, value: Any, mode: SelectMode, attempts: int = 2
    ) -> None:
        mode = coerce_mode(mode)
        if self.is_failed():
            return
        if not await self.expect_select_by(locator, value, mode, attempts):
            await self.error(
                f'Failed to select elements {MODE_LABELS[mode]} "{value}" by '
                f'{locator.strategy.value} "{locator.value}"'
            )

    async def select_by_index(self, locator: Locator, index: int, attempts: int = 2) -> None:
        await self.select_by(locator, index, SelectMode.INDEX, attempts)

    async def select_by_value(self, locator: Locator, value: str, attempts: int = 2) -> None:
        await self.select_by(locator, value, SelectMode.VALUE, attempts)

    async def select_by_visible_text(self, locator: Locator, text: str, attempts: int = 2) -> None:
        await self.select_by(locator, text, SelectMode.VISIBLE_TEXT, attempts)

    async def select_element(self, element: Optional[WebElement], mode: SelectMode, value: Any) -> None:
        """Select on an already resolved element, retrying stale references."""
        mode = coerce_mode(mode)
        if self.is_failed() or element is None:
            return
        outcome = await self.poller.attempt(
            lambda: element.select(mode, value),
            description=f"select {mode.value} \"{value}\"",
            policy=SELECT_POLICY,
        )
        if not outcome.succeeded and outcome.last_error is not None:
            raise outcome.last_error

    # Inspection

    async def is_element(
        self, state: ElementState, locator: Locator, context: Optional[WebElement] = None
    ) -> bool:
        """Whether the element exists and shows the given state."""
        state = coerce_state(state)
        if self.is_failed():
            return False
        element = await self.locator.try_find(locator, context)
        if element is None:
            return False
        outcome = await self.poller.attempt(
            lambda: read_state(element, state),
            attempts=1,
            description=f"inspect an element by {locator}",
            policy=SOFT_POLICY,
        )
        return bool(outcome.value) if outcome.succeeded else False

    async def is_displayed(self, locator: Locator, context: Optional[WebElement] = None) -> bool:
        return await self.is_element(ElementState.DISPLAYED, locator, context)

    async def is_enabled(self, locator: Locator, context: Optional[WebElement] = None) -> bool:
        return await self.is_element(ElementState.ENABLED, locator, context)

    async def is_selected(self, locator: Locator, context: Optional[WebElement] = None) -> bool:
        return await self.is_element(ElementState.SELECTED, locator, context)

    async def is_displayed_by_id(self, element_id: str) -> bool:
        return await self.is_displayed(Locator.id(element_id))

    async def expects_to_be(
        self,
        state: ElementState,
        locator: Locator,
        attempts: int = 2,
        parent: Optional[Locator] = None,
    ) -> bool:
        """
        Read an element state with retries.

        Args:
            state: State to read
            locator: Element to inspect
            attempts: Discrete lookup attempts
            parent: Optional container the element is searched in

        Returns:
            The observed state, False when the element could not be read
        """
        state = coerce_state(state)
        if self.is_failed():
            return False

        async def inspect() -> bool:
            context = await self.driver.find_element(parent) if parent is not None else None
            element = await self.driver.find_element(locator, context)
            return await read_state(element, state)

        outcome = await self.poller.attempt(
            inspect,
            attempts=attempts,
            description=f"inspect an element by {locator}",
            policy=SOFT_POLICY,
        )
        return bool(outcome.value) if outcome.succeeded else False

    # Verification

    async def verify_by(
        self, locator: Locator, expectation: Any, type: Any, attempts: int = 2
    ) -> bool:
        """
        Compare an element fact with an expectation as strings.

        Raises:
            ConfigurationError: If type is not a valid verification type
        """
        return await self._verify(locator, expectation, type, attempts, regex=False)

    async def verify_regex_by(
        self, locator: Locator, pattern: str, type: Any, attempts: int = 2
    ) -> bool:
        """Search an element fact for a pattern."""
        return await self._verify(locator, pattern, type, attempts, regex=True)

    async def verify_by_id(
        self, element_id: str, expectation: Any, type: Any, attempts: int = 2
    ) -> bool:
        return await self.verify_by(Locator.id(element_id), expectation, type, attempts)

    async def verify_input_value_by(self, locator: Locator, expectation: Any, attempts: int = 2) -> bool:
        return await self.verify_by(locator, expectation, VerificationType.attribute("value"), attempts)

    async def _verify(
        self, locator: Locator, expectation: Any, type: Any, attempts: int, regex: bool
    ) -> bool:
        verification = VerificationType.coerce(type)
        pattern = compile_pattern(expectation) if regex else None
        if self.is_failed():
            return False

        async def verify() -> bool:
            element = await self.driver.find_element(locator)
            actual = await read_fact(element, verification)
            actual = "" if actual is None else str(actual)
            if pattern is not None:
                return pattern.search(actual) is not None
            return actual == str(expectation)

        outcome = await self.poller.attempt(
            verify,
            attempts=attempts,
            description=f"verify {verification} of an element by {locator}",
            policy=SOFT_POLICY,
        )
        return bool(outcome.value) if outcome.succeeded else False

    # Waiting

    async def wait_until(
        self,
        predicate: Predicate,
        message: str,
        timeout: Optional[float] = None,
        interval: Optional[int] = None,
    ) -> PollOutcome:
        """
        Poll a predicate; a timeout becomes a case failure, never an exception.

        Args:
            predicate: Async callable returning True once the condition holds
            message: Failure message used when the deadline elapses
            timeout: Deadline in seconds (defaults to settings)
            interval: Poll interval in milliseconds (defaults to settings)
        """
        if self.is_failed():
            return PollOutcome.TIMED_OUT
        timeout = self.settings.wait_timeout if timeout is None else timeout
        interval = self.settings.wait_interval if interval is None else interval

        outcome = await self.poller.poll_until(predicate, timeout, interval)
        if outcome is PollOutcome.TIMED_OUT and not self.is_failed():
            self.output(message)
            await self.exception_error(message, WaitTimeoutError(message, timeout, interval))
        return outcome

    async def wait_until_element_is(
        self,
        state: ElementState,
        locator: Locator,
        timeout: Optional[float] = None,
        interval: Optional[int] = None,
        expected: bool = True,
    ) -> PollOutcome:
        """Wait until the element's state equals the expected polarity."""
        state = coerce_state(state)
        if self.is_failed():
            return PollOutcome.TIMED_OUT
        timeout = self.settings.wait_timeout if timeout is None else timeout
        interval = self.settings.wait_interval if interval is None else interval

        self.output(
            f'Wait {timeout} seconds until an element with {locator.strategy.value} '
            f'"{locator.value}" is {"" if expected else "not "}{state.value}'
        )

        async def observed() -> bool:
            element = await self.locator.try_find(locator)
            actual = await read_state(element, state) if element is not None else False
            return actual == expected

        if expected:
            message = f'{locator.strategy.value} "{locator.value}" not {state.value} in {timeout} seconds.'
        else:
            message = f'{locator.strategy.value} "{locator.value}" still {state.value} after {timeout} seconds.'
        return await self.wait_until(observed, message, timeout, interval)

    async def wait_until_element_is_displayed(
        self, locator: Locator, timeout: Optional[float] = None, interval: Optional[int] = None
    ) -> PollOutcome:
        return await self.wait_until_element_is(ElementState.DISPLAYED, locator, timeout, interval)

    async def wait_until_element_is_not_displayed(
        self, locator: Locator, timeout: Optional[float] = None, interval: Optional[int] = None
    ) -> PollOutcome:
        return await self.wait_until_element_is(
            ElementState.DISPLAYED, locator, timeout, interval, expected=False
        )

    async def wait_until_element_is_enabled(
        self, locator: Locator, timeout: Optional[float] = None, interval: Optional[int] = None
    ) -> PollOutcome:
        return await self.wait_until_element_is(ElementState.ENABLED, locator, timeout, interval)

    async def wait_until_element_is_selected(
        self, locator: Locator, timeout: Optional[float] = None, interval: Optional[int] = None
    ) -> PollOutcome:
        return await self.wait_until_element_is(ElementState.SELECTED, locator, timeout, interval)

    async def wait_until_id_is_displayed(
        self, element_id: str, timeout: Optional[float] = None, interval: Optional[int] = None
    ) -> PollOutcome:
        return await self.wait_until_element_is_displayed(Locator.id(element_id), timeout, interval)

    async def wait_until_id_is_not_displayed(
        self, element_id: str, timeout: Optional[float] = None, interval: Optional[int] = None
    ) -> PollOutcome:
        return await self.wait_until_element_is_not_displayed(Locator.id(element_id), timeout, interval)

    # Mouse

    async def move_mouse_to_element(self, element: Optional[WebElement], click: bool = False) -> None:
        if self.is_failed() or element is None:
            return
        await element.hover()
        if click:
            await element.click()

    # Visual comparison

    async def create_compare_image(self, name: str) -> Optional[str]:
        """Capture the current page as the expected image ``name``."""
        if self.is_failed():
            return None
        path = self.comparer.expected_path(name)
        await self.driver.take_screenshot(path)
        self.output(f'Created expected reference image "{path}"')
        return str(path)

    async def compare_with_verification_image(self, name: str) -> bool:
        """
        Compare the current page with the expected image ``name``.

        Returns:
            True when both images are equal; a difference fails the case and
            leaves an animated GIF of both images in the diff directory
        """
        if self.is_failed():
            return False
        expected = self.comparer.expected_path(name)
        if not expected.exists():
            await self.error(f'Verification image "{expected}" does not exist')
            return False

        actual = self.comparer.capture_path(name)
        await self.driver.take_screenshot(actual)
        self.output(f"Compare\t{name} | {actual}")
        try:
            diff = self.comparer.compare(expected, actual, name)
        finally:
            actual.unlink(missing_ok=True)

        if diff is not None:
            await self.error(f'Actual screen does not look equal to compare image "{name}"')
            return False
        return True
