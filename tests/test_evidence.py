"""
Unit tests for the file evidence sink.
"""

from datetime import datetime

import pytest

from webaccept.monitoring.evidence import MAX_LABEL_LENGTH, FileEvidenceSink

from conftest import StubDriver

FIXED_TIME = datetime(2024, 3, 9, 14, 5, 7)


@pytest.fixture
def sink(tmp_path):
    return FileEvidenceSink(tmp_path / "evidence", now=lambda: FIXED_TIME)


def test_from_settings(settings):
    assert FileEvidenceSink.from_settings(settings).root == settings.evidence_root


def test_log_appends_timestamped_lines(sink):
    sink.log("first", "errors")
    sink.log("second", "errors")
    sink.log("note", "report", extension="csv")

    assert sink.log_path("errors").read_text(encoding="utf-8") == (
        "09.03.2024 14:05:07 » first\n09.03.2024 14:05:07 » second\n"
    )
    assert sink.log_path("report", "csv").exists()


@pytest.mark.asyncio
async def test_screenshot_name(sink):
    driver = StubDriver()

    path = await sink.screenshot(driver, "LoginCase|_run|Failed")

    assert path == str(sink.screenshot_dir / "09|03|24|14|05|07|LoginCase|_run|Failed.png")
    assert driver.names() == ["take_screenshot"]


@pytest.mark.asyncio
async def test_screenshot_label_is_sanitized(sink):
    path = await sink.screenshot(StubDriver(), "a/b\\c" + "x" * 300)
    name = path.rsplit("/", 1)[-1]

    assert name.startswith("09|03|24|14|05|07|a_b_c")
    assert len(name) == len("09|03|24|14|05|07|") + MAX_LABEL_LENGTH + len(".png")


@pytest.mark.asyncio
async def test_unwritable_root_is_reported_not_raised(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    sink = FileEvidenceSink(blocker / "evidence", now=lambda: FIXED_TIME)
    driver = StubDriver()

    sink.log("first", "errors")
    path = await sink.screenshot(driver, "LoginCase|_run|Failed")

    assert path == ""
    assert not sink.log_path("errors").exists()
    assert driver.names() == []
