"""
Element resolution against the remote browser.

Lookups return ``None`` instead of raising when nothing matches. A hard lookup
additionally reports the failure to the running case and trips the shared
failure latch.
"""

from typing import TYPE_CHECKING, List, Optional

from webaccept.core.interfaces import BrowserDriver, EvidenceSink, WebElement
from webaccept.core.latch import FailureLatch
from webaccept.core.types import Locator
from webaccept.error_handling.exceptions import ElementNotFoundError
from webaccept.monitoring.logger import get_logger

if TYPE_CHECKING:
    from webaccept.orchestration.case import TestCase

ERRORS_LOG = "errors"


def not_found_message(locator: Locator) -> str:
    return f'element by "{locator.strategy.value}" with value "{locator.value}" not found'


class ElementLocator:
    """Resolves locators to zero, one or many remote elements."""

    def __init__(
        self,
        driver: BrowserDriver,
        latch: FailureLatch,
        evidence: Optional[EvidenceSink] = None,
    ) -> None:
        self.driver = driver
        self.latch = latch
        self.evidence = evidence
        self.case: Optional["TestCase"] = None
        self.logger = get_logger("webaccept.locator")

    def attach(self, case: Optional["TestCase"]) -> None:
        """Bind the case that receives hard lookup failures."""
        self.case = case

    async def find(
        self, locator: Locator, context: Optional[WebElement] = None
    ) -> Optional[WebElement]:
        """
        Hard lookup.

        Returns:
            The element, or None after reporting the failure to the case
        """
        if self.latch.tripped:
            return None

        try:
            return await self.driver.find_element(locator, context)
        except ElementNotFoundError as e:
            await self._report_not_found(locator, e)
            return None

    async def try_find(
        self, locator: Locator, context: Optional[WebElement] = None
    ) -> Optional[WebElement]:
        """Soft lookup, None when nothing matches."""
        if self.latch.tripped:
            return None

        try:
            return await self.driver.find_element(locator, context)
        except ElementNotFoundError:
            self.logger.debug(f"Soft lookup found nothing by {locator}")
            return None

    async def find_all(
        self, locator: Locator, context: Optional[WebElement] = None
    ) -> List[WebElement]:
        """Every matching element in document order, possibly empty."""
        if self.latch.tripped:
            return []
        return await self.driver.find_elements(locator, context)

    async def _report_not_found(self, locator: Locator, error: ElementNotFoundError) -> None:
        message = not_found_message(locator)
        if self.case is not None:
            await self.case.exception_error(message, error)
            self.fail()
            return

        self.fail()
        self.logger.error(message)
        if self.evidence is not None:
            try:
                self.evidence.log(message, ERRORS_LOG)
                await self.evidence.screenshot(self.driver, message.replace(" ", ""))
            except OSError as e:
                self.logger.warning(f"Lookup failure evidence could not be stored: {e}")

    def fail(self) -> bool:
        """Trip the latch; repeated calls are silent."""
        return self.latch.trip("ElementLocator")

    def is_failed(self) -> bool:
        return self.latch.tripped

    def reset(self) -> None:
        self.latch.reset()
