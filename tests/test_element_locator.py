"""
Unit tests for element resolution.
"""

from unittest.mock import AsyncMock

import pytest

from webaccept.core.types import By
from webaccept.emulator.locator import ElementLocator, not_found_message
from webaccept.error_handling.exceptions import ElementNotFoundError

from conftest import StubElement


@pytest.fixture
def locator(driver, latch, evidence):
    return ElementLocator(driver, latch, evidence)


def test_not_found_message():
    assert not_found_message(By.class_name("price")) == (
        'element by "class name" with value "price" not found'
    )


class TestFind:
    @pytest.mark.asyncio
    async def test_found(self, locator, driver):
        element = StubElement(tag="button")
        driver.elements[By.id("save")] = element

        assert await locator.find(By.id("save")) is element
        assert not locator.is_failed()

    @pytest.mark.asyncio
    async def test_missing_without_case(self, locator, latch, evidence):
        assert await locator.find(By.id("submit")) is None

        assert latch.tripped
        assert latch.source == "ElementLocator"
        assert evidence.lines["errors"] == ['element by "id" with value "submit" not found']
        assert evidence.screenshots == ['elementby"id"withvalue"submit"notfound']

    @pytest.mark.asyncio
    async def test_missing_reported_to_case(self, locator, latch, evidence):
        case = AsyncMock()
        locator.attach(case)

        assert await locator.find(By.name("email")) is None

        case.exception_error.assert_awaited_once()
        message, error = case.exception_error.await_args.args
        assert message == 'element by "name" with value "email" not found'
        assert isinstance(error, ElementNotFoundError)
        assert latch.tripped
        assert evidence.lines == {}

    @pytest.mark.asyncio
    async def test_tripped_latch_skips_driver(self, locator, driver, latch):
        latch.trip("Client")

        assert await locator.find(By.id("save")) is None
        assert await locator.try_find(By.id("save")) is None
        assert await locator.find_all(By.id("save")) == []
        assert driver.calls == []


class TestSoftLookups:
    @pytest.mark.asyncio
    async def test_try_find_missing_does_not_fail(self, locator, latch, evidence):
        assert await locator.try_find(By.id("optional-banner")) is None
        assert not latch.tripped
        assert evidence.lines == {}

    @pytest.mark.asyncio
    async def test_find_all_in_context(self, locator, driver):
        row = StubElement(tag="tr")
        cells = [StubElement(tag="td"), StubElement(tag="td")]
        driver.elements[By.tag_name("td")] = cells

        assert await locator.find_all(By.tag_name("td"), row) == cells
        assert driver.calls[-1] == ("find_elements", By.tag_name("td"), row)


def test_fail_and_reset(locator, latch):
    assert locator.fail() is True
    assert locator.fail() is False
    assert locator.is_failed()

    locator.reset()
    assert not latch.tripped
