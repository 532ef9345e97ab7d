"""
Test suite orchestrator.

Owns the browser session, the ordered case collection, the run recorder and
evidence sink wiring, and the end-of-run failure digest.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Type, Union

from webaccept.config.settings import SettingsSource, coerce_settings
from webaccept.core.interfaces import BrowserDriver, EvidenceSink, RunRecorder
from webaccept.core.timer import Timer
from webaccept.core.types import CaseRun, RunStatus, SuiteRun
from webaccept.error_handling.exceptions import ConfigurationError, SessionError
from webaccept.monitoring.evidence import FileEvidenceSink
from webaccept.monitoring.logger import get_logger
from webaccept.monitoring.notifier import MailNotifier
from webaccept.orchestration.case import ERRORS_LOG, TestCase
from webaccept.orchestration.factory import SuiteFactory
from webaccept.orchestration.registry import CaseRegistry, registry as default_registry

CaseRef = Union[TestCase, Type[TestCase], str]

_DEFAULT = object()


class TestSuite:
    """Runs test cases sequentially against one browser session."""

    __test__ = False

    def __init__(
        self,
        settings: SettingsSource = None,
        *,
        factory: Optional[SuiteFactory] = None,
        registry: Optional[CaseRegistry] = None,
        driver: Optional[BrowserDriver] = None,
        recorder: Optional[RunRecorder] = None,
        evidence: Optional[EvidenceSink] = None,
        notifier=_DEFAULT,
    ) -> None:
        """
        Initialize the suite.

        Args:
            settings: Settings instance, mapping of settings, or None for defaults
            factory: Collaborator factory (defaults to SuiteFactory)
            registry: Case registry used to resolve case names
            driver: Browser driver override
            recorder: Run recorder override
            evidence: Evidence sink override
            notifier: Mail notifier override; None disables failure mails

        Raises:
            TypeError: If settings is of an unsupported type
        """
        self.settings = coerce_settings(settings)
        self.factory = factory or SuiteFactory(self.settings)
        self.registry = registry or default_registry
        self.logger = get_logger(
            "webaccept.suite",
            suite=self.settings.suite_name,
            build_number=self.settings.build_number,
            branch=self.settings.branch,
        )

        self.driver = driver or self.factory.create_driver()
        self._recorder = recorder
        self.evidence = evidence or self.factory.create_evidence()
        self.notifier: Optional[MailNotifier] = (
            self.factory.create_notifier() if notifier is _DEFAULT else notifier
        )

        self.latch = self.factory.create_latch(on_trip=self._mark_failed)
        self.client = self.factory.create_client(self.driver, self.latch, self.evidence)

        self.failed = False
        self.mail_sent = False
        self.error_messages: List[str] = []
        self.current_case: Optional[TestCase] = None
        self.suite_run = SuiteRun(
            build_number=str(self.settings.build_number),
            suite_name=self.settings.suite_name,
            branch=self.settings.branch,
            version=self.settings.shop_version,
        )
        self.case_runs: List[CaseRun] = []
        self._cases: List[Union[TestCase, Type[TestCase]]] = []
        self._initialized = False

    @property
    def recorder(self) -> RunRecorder:
        if self._recorder is None:
            self._recorder = self.factory.create_recorder()
        return self._recorder

    @property
    def error_log_path(self) -> str:
        if isinstance(self.evidence, FileEvidenceSink):
            return str(self.evidence.log_path(ERRORS_LOG))
        return ERRORS_LOG

    def _mark_failed(self) -> None:
        self.failed = True

    # Case collection

    def set_test_cases(self, cases: Iterable[CaseRef]) -> "TestSuite":
        """Replace the case collection; names are resolved immediately."""
        self._cases = [self._resolve(case) for case in cases]
        return self

    def add_test_case(self, case: CaseRef) -> "TestSuite":
        self._cases.append(self._resolve(case))
        return self

    def push_test_case(self, name: str) -> "TestSuite":
        """
        Append a case by name.

        Raises:
            ConfigurationError: If the name does not resolve to a TestCase
        """
        return self.add_test_case(name)

    def push_test_cases(self, names: Iterable[str]) -> "TestSuite":
        for name in names:
            self.push_test_case(name)
        return self

    @property
    def test_cases(self) -> List[Union[TestCase, Type[TestCase]]]:
        return list(self._cases)

    def _resolve(self, case: CaseRef) -> Union[TestCase, Type[TestCase]]:
        if isinstance(case, TestCase):
            return case
        if isinstance(case, str):
            return self.registry.resolve(case, package=self.settings.cases_package)
        if isinstance(case, type) and issubclass(case, TestCase):
            return case
        raise ConfigurationError(
            f"Test cases must be TestCase instances, classes or names, got {case!r}"
        )

    def _materialize(self) -> List[TestCase]:
        return [
            case if isinstance(case, TestCase) else case(self, self.client)
            for case in self._cases
        ]

    def add_error_message(self, message: str) -> None:
        """Append one line to the failure digest."""
        self.error_messages.append(message)

    # Lifecycle

    async def initialize(self) -> None:
        """
        Establish the browser session.

        A session that cannot be created is fatal: an init-error suite record
        is written and the process exits with status 1.
        """
        if self._initialized:
            return
        try:
            await self.driver.start()
        except SessionError as e:
            self.recorder.init_error()
            self.logger.critical(f"Browser session could not be established: {e.message}")
            raise SystemExit(1) from e
        self._initialized = True

    async def run(self) -> SuiteRun:
        """
        Run every case in insertion order.

        Returns:
            The finished suite run
        """
        await self.initialize()
        try:
            cases = self._materialize()
            timer = Timer().start()
            self.suite_run.started_at = datetime.now(timezone.utc)
            self.suite_run.run_id = self.recorder.start_suite()
            self.logger.info(f"Running {len(cases)} case(s) of {self.settings.suite_name}")

            for case in cases:
                self.current_case = case
                self.case_runs.append(await case.run())
            self.current_case = None

            status = RunStatus.FAILED if self.failed else RunStatus.PASSED
            self.recorder.end_suite(status)
            self.suite_run.status = status
            self.suite_run.ended_at = datetime.now(timezone.utc)
            self.suite_run.elapsed_seconds = timer.elapsed()

            if self.failed and not self.mail_sent and self.notifier is not None:
                self.send_error_mail()
        finally:
            await self.close()

        return self.suite_run

    def send_error_mail(self) -> bool:
        """Send the failure digest once per suite."""
        if self.mail_sent or self.notifier is None:
            return False
        if self.notifier.send("\n".join(self.error_messages)):
            self.mail_sent = True
        return self.mail_sent

    async def close(self) -> None:
        """Release the browser session and the recorder connection."""
        if self._initialized:
            await self.driver.stop()
            self._initialized = False
        if self._recorder is not None:
            self._recorder.close()

    async def __aenter__(self) -> "TestSuite":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def evidence_root(self) -> Path:
        return self.settings.evidence_root
