"""
Unit tests for the test case lifecycle.
"""

import pytest

from webaccept.core.types import By, RunStatus
from webaccept.error_handling.exceptions import ConfigurationError
from webaccept.monitoring.evidence import FileEvidenceSink
from webaccept.orchestration.case import TestCase, camel_to_sentence, random_alphabetic_letters
from webaccept.orchestration.registry import CaseRegistry
from webaccept.orchestration.suite import TestSuite

from conftest import StubElement


@pytest.fixture
def suite(settings, driver, recorder, evidence):
    return TestSuite(
        settings,
        driver=driver,
        recorder=recorder,
        evidence=evidence,
        notifier=None,
        registry=CaseRegistry(),
    )


class SubmitFormCase(TestCase):
    async def _run(self):
        await self.client.click_id("submit")
        await self.client.type_id("name", "Jane")
        await self.client.click_id("confirm")


class RepeatedFailureCase(TestCase):
    async def _run(self):
        await self.error("Basket total is wrong")
        await self.error("second failure")
        await self.exception_error("third failure", ValueError("ignored"))


class CrashingCase(TestCase):
    async def _run(self):
        raise KeyError("missing fixture data")


class MisconfiguredCase(TestCase):
    async def _run(self):
        await self.client.verify_by(By.id("total"), "10", "price")


class PassingCase(TestCase):
    async def _run(self):
        await self.client.click_id("confirm")


def test_camel_to_sentence():
    assert camel_to_sentence("clickTheSaveButton") == "click the save button"
    assert camel_to_sentence("openURLNow") == "open url now"
    assert camel_to_sentence("SaveButton") == "save button"


def test_random_alphabetic_letters():
    assert random_alphabetic_letters(8, "upper").isupper()
    assert random_alphabetic_letters(8, "lower").islower()
    letters = random_alphabetic_letters(12)
    assert len(letters) == 12
    assert letters.isalpha()


class TestCaseRun:
    """Test the lifecycle of one case."""

    @pytest.mark.asyncio
    async def test_passing_case(self, suite, driver, recorder):
        driver.elements[By.id("confirm")] = StubElement(tag="button")

        record = await PassingCase(suite, suite.client).run()

        assert record.name == "PassingCase"
        assert record.status is RunStatus.PASSED
        assert record.error is None
        assert record.ended_at is not None
        assert recorder.events == [("start_case", "PassingCase"), ("end_case", RunStatus.PASSED)]
        assert suite.failed is False

    @pytest.mark.asyncio
    async def test_missing_element_skips_remaining_actions(self, suite, driver, recorder, evidence):
        driver.url = "http://shop.test/store/form"
        driver.elements[By.id("name")] = StubElement(tag="input")
        driver.elements[By.id("confirm")] = StubElement(tag="button")

        case = SubmitFormCase(suite, suite.client)
        record = await case.run()

        assert record.status is RunStatus.FAILED
        assert record.error.message == 'element by "id" with value "submit" not found'
        assert record.error.error_url == "http://shop.test/store/form"
        assert record.error.screenshot == "shot-1.png"
        # Nothing after the failed lookup reaches the browser.
        assert driver.names() == ["find_element", "get_current_url"]
        assert recorder.names() == ["start_case", "case_error", "end_case"]
        assert len(evidence.lines["errors"]) == 1
        assert case.failure.message == record.error.message
        assert suite.failed is True

    @pytest.mark.asyncio
    async def test_single_evidence_bundle(self, suite, recorder, evidence):
        case = RepeatedFailureCase(suite, suite.client)

        record = await case.run()

        assert record.status is RunStatus.FAILED
        assert case.failure.message == "Basket total is wrong"
        assert [e for e in recorder.events if e[0] == "case_error"] == [
            ("case_error", "Basket total is wrong", "http://localhost/", "shot-1.png")
        ]
        assert len(evidence.lines["errors"]) == 1
        assert len(evidence.screenshots) == 1
        assert evidence.screenshots[0].startswith("RepeatedFailureCase|")
        assert len(suite.error_messages) == 12

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_recorded(self, suite, evidence):
        case = CrashingCase(suite, suite.client)

        record = await case.run()

        assert record.status is RunStatus.FAILED
        assert record.error.message.startswith("Unexpected KeyError thrown by _run on line ")
        assert "missing fixture data" in evidence.lines["errors"][0]
        assert "Traceback" in case.failure.trace

    @pytest.mark.asyncio
    async def test_configuration_errors_propagate(self, suite):
        with pytest.raises(ConfigurationError):
            await MisconfiguredCase(suite, suite.client).run()

    @pytest.mark.asyncio
    async def test_rerun_resets_failure(self, suite, driver):
        case = PassingCase(suite, suite.client)
        assert (await case.run()).status is RunStatus.FAILED

        driver.elements[By.id("confirm")] = StubElement(tag="button")
        record = await case.run()

        assert record.status is RunStatus.PASSED
        assert case.failure is None


class TestFailureDigest:
    @pytest.mark.asyncio
    async def test_digest_lines(self, suite, driver):
        driver.url = "http://shop.test/store/basket"

        await RepeatedFailureCase(suite, suite.client).run()

        digest = suite.error_messages
        assert digest[0] == "Branch: feature x"
        assert digest[1] == "Build number: 42"
        assert digest[2] == "Suite name: Smoke Suite"
        assert digest[3] == "Case: RepeatedFailureCase"
        assert digest[4].startswith("Test method: ")
        assert digest[5] == "Failure url: http://shop.test/store/basket"
        assert digest[6] == ""
        assert digest[7].startswith("Error Message: \nRepeatedFailureCase | ")
        assert digest[8].startswith("Error time: ")
        assert digest[9] == "Screenshot: shot-1.png"
        assert digest[10] == "Logfile: errors"
        assert digest[11] == ""


class TestOutput:
    def test_output_to_evidence(self, settings, driver, recorder, evidence):
        settings = settings.model_copy(update={"log_stored": True})
        suite = TestSuite(
            settings, driver=driver, recorder=recorder, evidence=evidence, notifier=None
        )
        case = PassingCase(suite, suite.client)

        case.output("addedToBasket", camel_case_to_human=True)

        assert evidence.lines["log"] == ["addedToBasket"]


@pytest.mark.asyncio
async def test_missing_submit_leaves_one_screenshot_file(settings, driver, recorder):
    evidence = FileEvidenceSink(settings.evidence_root)
    suite = TestSuite(settings, driver=driver, recorder=recorder, evidence=evidence, notifier=None)
    driver.url = "http://shop.test/store/form"

    record = await SubmitFormCase(suite, suite.client).run()

    assert record.status is RunStatus.FAILED
    screenshots = list(evidence.screenshot_dir.iterdir())
    assert len(screenshots) == 1
    assert screenshots[0].name.endswith("|SubmitFormCase|_run|ElementBy\"id\"WithValue\"submit\"NotFound|ElementNotFoundError.png")
    errors = evidence.log_path("errors").read_text(encoding="utf-8")
    assert 'element by "id" with value "submit" not found' in errors
    assert ("case_error", record.error.message, "http://shop.test/store/form", str(screenshots[0])) in recorder.events
