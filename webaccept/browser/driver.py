"""
Playwright browser driver implementation.
"""

import re
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar

from playwright.async_api import (
    Browser,
    BrowserContext,
    ElementHandle,
    Error as PlaywrightError,
    Page,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from webaccept.config.settings import Settings, get_settings
from webaccept.core.interfaces import BrowserDriver, WebElement
from webaccept.core.types import Locator, LocatorStrategy, SelectMode
from webaccept.error_handling.exceptions import (
    BrowserError,
    DriverTimeoutError,
    ElementNotFoundError,
    ElementStateError,
    SessionError,
    StaleElementError,
)
from webaccept.monitoring.logger import get_logger

T = TypeVar("T")

STALE_PATTERN = re.compile(r"not attached|detached|has been disposed|execution context was destroyed", re.I)
STATE_PATTERN = re.compile(r"not (visible|enabled|editable)|not an? (<select>|select)|element is disabled", re.I)


def _quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


SELECTOR_TABLE: Dict[LocatorStrategy, Callable[[str], str]] = {
    LocatorStrategy.ID: lambda v: f"css=[id={_quote(v)}]",
    LocatorStrategy.NAME: lambda v: f"css=[name={_quote(v)}]",
    LocatorStrategy.CLASS_NAME: lambda v: f"css=[class~={_quote(v)}]",
    LocatorStrategy.CSS_SELECTOR: lambda v: f"css={v}",
    LocatorStrategy.XPATH: lambda v: f"xpath={v}",
    LocatorStrategy.LINK_TEXT: lambda v: f"css=a:text-is({_quote(v)})",
    LocatorStrategy.PARTIAL_LINK_TEXT: lambda v: f"css=a:has-text({_quote(v)})",
    LocatorStrategy.TAG_NAME: lambda v: f"css={v}",
}


def to_selector(locator: Locator) -> str:
    """Translate a locator into a Playwright selector."""
    return SELECTOR_TABLE[locator.strategy](locator.value)


def translate_error(
    error: PlaywrightError,
    action: str,
    selector: Optional[str] = None,
    url: Optional[str] = None,
) -> BrowserError:
    """Map a Playwright error onto the webaccept browser error taxonomy."""
    message = str(error).splitlines()[0] if str(error) else type(error).__name__
    if isinstance(error, PlaywrightTimeoutError):
        error_class = DriverTimeoutError
    elif STALE_PATTERN.search(str(error)):
        error_class = StaleElementError
    elif STATE_PATTERN.search(str(error)):
        error_class = ElementStateError
    else:
        error_class = BrowserError
    return error_class(message, url=url, selector=selector, action=action, cause=error)


async def _call(
    operation: Callable[[], Awaitable[T]],
    action: str,
    selector: Optional[str] = None,
) -> T:
    try:
        return await operation()
    except PlaywrightError as e:
        raise translate_error(e, action, selector=selector) from e


class PlaywrightElement(WebElement):
    """WebElement backed by a Playwright element handle."""

    def __init__(self, handle: ElementHandle, selector: Optional[str] = None) -> None:
        self.handle = handle
        self.selector = selector

    async def click(self) -> None:
        await _call(lambda: self.handle.click(), "click", self.selector)

    async def clear(self) -> None:
        await _call(lambda: self.handle.fill(""), "clear", self.selector)

    async def send_keys(self, value: str) -> None:
        await _call(lambda: self.handle.type(value), "type", self.selector)

    async def get_attribute(self, name: str) -> Optional[str]:
        return await _call(lambda: self.handle.get_attribute(name), "get_attribute", self.selector)

    async def get_css_value(self, name: str) -> str:
        return await _call(
            lambda: self.handle.evaluate(
                "(el, name) => getComputedStyle(el).getPropertyValue(name)", name
            ),
            "get_css_value",
            self.selector,
        )

    async def get_text(self) -> str:
        return await _call(lambda: self.handle.inner_text(), "get_text", self.selector)

    async def get_tag_name(self) -> str:
        return await _call(
            lambda: self.handle.evaluate("el => el.tagName.toLowerCase()"),
            "get_tag_name",
            self.selector,
        )

    async def is_displayed(self) -> bool:
        return await _call(lambda: self.handle.is_visible(), "is_displayed", self.selector)

    async def is_enabled(self) -> bool:
        return await _call(lambda: self.handle.is_enabled(), "is_enabled", self.selector)

    async def is_selected(self) -> bool:
        return await _call(
            lambda: self.handle.evaluate("el => !!(el.checked || el.selected)"),
            "is_selected",
            self.selector,
        )

    async def get_location(self) -> Tuple[int, int]:
        x, y = await _call(
            lambda: self.handle.evaluate(
                "el => { const r = el.getBoundingClientRect();"
                " return [Math.round(r.left + window.scrollX), Math.round(r.top + window.scrollY)]; }"
            ),
            "get_location",
            self.selector,
        )
        return int(x), int(y)

    async def select(self, mode: SelectMode, value: Any) -> None:
        if mode is SelectMode.INDEX:
            operation = lambda: self.handle.select_option(index=int(value))
        elif mode is SelectMode.VALUE:
            operation = lambda: self.handle.select_option(value=str(value))
        else:
            operation = lambda: self.handle.select_option(label=str(value))
        await _call(operation, f"select_by_{mode.value}", self.selector)

    async def hover(self) -> None:
        await _call(lambda: self.handle.hover(), "hover", self.selector)


class PlaywrightDriver(BrowserDriver):
    """Playwright-based browser automation driver."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        headless: Optional[bool] = None,
        ws_endpoint: Optional[str] = None,
    ) -> None:
        """
        Initialize the Playwright driver.

        Args:
            settings: Suite settings (defaults to the cached settings)
            headless: Override for headless mode
            ws_endpoint: Override for the remote endpoint to connect to
        """
        settings = settings or get_settings()
        self.browser_name = settings.browser
        self.headless = headless if headless is not None else settings.browser_headless
        self.ws_endpoint = ws_endpoint or settings.browser_ws_endpoint
        self.viewport_width = settings.browser_viewport_width
        self.viewport_height = settings.browser_viewport_height
        self.timeout = settings.browser_timeout

        self.logger = get_logger("webaccept.browser.driver")
        self._playwright = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    async def start(self) -> None:
        """
        Start or attach to the browser and create a page.

        Raises:
            SessionError: If the session cannot be established
        """
        try:
            if self._playwright is None:
                self._playwright = await async_playwright().start()

            browser_type = getattr(self._playwright, self.browser_name)
            if self._browser is None:
                if self.ws_endpoint:
                    self.logger.info(f"Connecting to remote browser at {self.ws_endpoint}")
                    self._browser = await browser_type.connect(self.ws_endpoint)
                else:
                    self.logger.info(
                        f"Starting {self.browser_name}",
                        extra={
                            "headless": self.headless,
                            "viewport": f"{self.viewport_width}x{self.viewport_height}",
                        },
                    )
                    self._browser = await browser_type.launch(headless=self.headless)

            if self._context is None:
                self._context = await self._browser.new_context(
                    viewport={
                        "width": self.viewport_width,
                        "height": self.viewport_height,
                    },
                )
                self._context.set_default_timeout(self.timeout)

            if self._page is None:
                self._page = await self._context.new_page()
        except PlaywrightError as e:
            await self.stop()
            raise SessionError(
                f"Could not establish a {self.browser_name} session: {e}",
                endpoint=self.ws_endpoint,
                cause=e,
            ) from e

    async def stop(self) -> None:
        """Stop the browser and cleanup resources."""
        try:
            if self._page:
                await self._page.close()
            if self._context:
                await self._context.close()
            if self._browser:
                await self._browser.close()
        except PlaywrightError as e:
            self.logger.warning(f"Error while closing the browser: {e}")
        finally:
            self._page = None
            self._context = None
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

        self.logger.info("Browser stopped")

    @property
    def page(self) -> Page:
        if not self._page:
            raise SessionError("Browser not started. Call start() first.")
        return self._page

    async def find_element(
        self, locator: Locator, context: Optional[WebElement] = None
    ) -> WebElement:
        selector = to_selector(locator)
        root = context.handle if isinstance(context, PlaywrightElement) else self.page
        handle = await _call(lambda: root.query_selector(selector), "find_element", selector)
        if handle is None:
            raise ElementNotFoundError(
                f"No element matches {locator}", selector=selector, action="find_element"
            )
        return PlaywrightElement(handle, selector)

    async def find_elements(
        self, locator: Locator, context: Optional[WebElement] = None
    ) -> List[WebElement]:
        selector = to_selector(locator)
        root = context.handle if isinstance(context, PlaywrightElement) else self.page
        handles = await _call(lambda: root.query_selector_all(selector), "find_elements", selector)
        return [PlaywrightElement(handle, selector) for handle in handles]

    async def get(self, url: str) -> None:
        """Navigate to a URL."""
        self.logger.debug("Navigating to URL", extra={"url": url})
        try:
            await self.page.goto(url)
        except PlaywrightError as e:
            raise translate_error(e, "get", url=url) from e

    async def execute_script(self, script: str, *args: Any) -> Any:
        """
        Evaluate a function body in the page.

        The script sees its arguments as ``arguments`` and returns with
        ``return``, like a WebDriver script.
        """
        unwrapped = [arg.handle if isinstance(arg, PlaywrightElement) else arg for arg in args]
        expression = f"(args) => (function() {{ {script} }}).apply(null, args)"
        return await _call(lambda: self.page.evaluate(expression, unwrapped), "execute_script")

    async def take_screenshot(self, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        await _call(lambda: self.page.screenshot(path=str(path)), "screenshot")

    async def get_current_url(self) -> str:
        return self.page.url

    async def __aenter__(self) -> "PlaywrightDriver":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()
