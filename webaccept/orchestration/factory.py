"""
Factory wiring the collaborators of a suite run.
"""

from typing import Callable, Optional

from webaccept.browser.driver import PlaywrightDriver
from webaccept.config.settings import Settings
from webaccept.core.interfaces import BrowserDriver, EvidenceSink, RunRecorder
from webaccept.core.latch import FailureLatch
from webaccept.emulator.client import ActionFacade
from webaccept.emulator.locator import ElementLocator
from webaccept.error_handling.recovery import RetryPoller, RetryPolicy
from webaccept.monitoring.evidence import FileEvidenceSink
from webaccept.monitoring.notifier import MailNotifier, create_notifier
from webaccept.monitoring.recorder import create_run_recorder
from webaccept.visual.compare import ImageComparer


class SuiteFactory:
    """Creates the driver, sinks and the action facade graph of one suite."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def create_driver(self) -> BrowserDriver:
        return PlaywrightDriver(self.settings)

    def create_evidence(self) -> EvidenceSink:
        return FileEvidenceSink.from_settings(self.settings)

    def create_recorder(self) -> RunRecorder:
        return create_run_recorder(self.settings)

    def create_notifier(self) -> Optional[MailNotifier]:
        return create_notifier(self.settings)

    def create_latch(self, on_trip: Optional[Callable[[], None]] = None) -> FailureLatch:
        return FailureLatch(on_trip=on_trip)

    def create_client(
        self,
        driver: BrowserDriver,
        latch: FailureLatch,
        evidence: Optional[EvidenceSink] = None,
        poller: Optional[RetryPoller] = None,
    ) -> ActionFacade:
        """
        Build the action facade and its element locator around one shared latch.

        Args:
            driver: Browser session
            latch: Failure latch shared by locator, facade and cases
            evidence: Evidence sink for attempt logs and screenshots
            poller: Optional pre-built retry engine (tests inject fake clocks)
        """
        poller = poller or RetryPoller(
            driver,
            latch,
            evidence,
            RetryPolicy(max_attempts=self.settings.lookup_attempts),
        )
        locator = ElementLocator(driver, latch, evidence)
        return ActionFacade(
            driver,
            locator,
            poller,
            self.settings,
            evidence=evidence,
            comparer=ImageComparer.from_settings(self.settings),
        )
