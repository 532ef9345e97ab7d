"""
Core data models and types for the webaccept harness.
"""

from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from webaccept.error_handling.exceptions import ConfigurationError


class RunStatus(IntEnum):
    """Status of a suite or case run, as persisted by the run recorder."""

    PENDING = 0
    PASSED = 1
    FAILED = 2


class LocatorStrategy(str, Enum):
    """Mechanisms used to resolve a remote element."""

    ID = "id"
    NAME = "name"
    CLASS_NAME = "class name"
    CSS_SELECTOR = "css selector"
    XPATH = "xpath"
    LINK_TEXT = "link text"
    PARTIAL_LINK_TEXT = "partial link text"
    TAG_NAME = "tag name"


class ElementState(str, Enum):
    """Observable boolean facts of an element used by inspections and waits."""

    DISPLAYED = "displayed"
    ENABLED = "enabled"
    SELECTED = "selected"


class SelectMode(str, Enum):
    """How an option of a select element is chosen."""

    INDEX = "index"
    VALUE = "value"
    VISIBLE_TEXT = "visibleText"


class PollOutcome(str, Enum):
    """Result of a time-bounded poll."""

    SATISFIED = "satisfied"
    TIMED_OUT = "timed_out"


class Locator(BaseModel):
    """A locator strategy paired with its value."""

    model_config = ConfigDict(frozen=True)

    strategy: LocatorStrategy
    value: str

    @classmethod
    def id(cls, value: str) -> "Locator":
        return cls(strategy=LocatorStrategy.ID, value=value)

    @classmethod
    def name(cls, value: str) -> "Locator":
        return cls(strategy=LocatorStrategy.NAME, value=value)

    @classmethod
    def class_name(cls, value: str) -> "Locator":
        return cls(strategy=LocatorStrategy.CLASS_NAME, value=value)

    @classmethod
    def css_selector(cls, value: str) -> "Locator":
        return cls(strategy=LocatorStrategy.CSS_SELECTOR, value=value)

    @classmethod
    def xpath(cls, value: str) -> "Locator":
        return cls(strategy=LocatorStrategy.XPATH, value=value)

    @classmethod
    def link_text(cls, value: str) -> "Locator":
        return cls(strategy=LocatorStrategy.LINK_TEXT, value=value)

    @classmethod
    def partial_link_text(cls, value: str) -> "Locator":
        return cls(strategy=LocatorStrategy.PARTIAL_LINK_TEXT, value=value)

    @classmethod
    def tag_name(cls, value: str) -> "Locator":
        return cls(strategy=LocatorStrategy.TAG_NAME, value=value)

    def __str__(self) -> str:
        return f'{self.strategy.value} "{self.value}"'


By = Locator


class VerificationKind(str, Enum):
    """Element facts a verification can read."""

    TEXT = "text"
    ID = "id"
    TAG_NAME = "tagName"
    ATTRIBUTE = "attribute"
    CSS_VALUE = "cssValue"


class VerificationType(BaseModel):
    """
    Tagged variant selecting the element fact to verify.

    ``text``, ``id`` and ``tagName`` read built-in facts; ``attribute`` and
    ``cssValue`` carry the name of the attribute or CSS property to read.
    """

    model_config = ConfigDict(frozen=True)

    kind: VerificationKind
    name: Optional[str] = None

    @classmethod
    def text(cls) -> "VerificationType":
        return cls(kind=VerificationKind.TEXT)

    @classmethod
    def element_id(cls) -> "VerificationType":
        return cls(kind=VerificationKind.ID)

    @classmethod
    def tag_name(cls) -> "VerificationType":
        return cls(kind=VerificationKind.TAG_NAME)

    @classmethod
    def attribute(cls, name: str) -> "VerificationType":
        return cls(kind=VerificationKind.ATTRIBUTE, name=name)

    @classmethod
    def css_value(cls, name: str) -> "VerificationType":
        return cls(kind=VerificationKind.CSS_VALUE, name=name)

    @classmethod
    def coerce(
        cls, value: Union["VerificationType", str, Mapping[str, Any]]
    ) -> "VerificationType":
        """
        Build a verification type from its loose spellings.

        Accepts an instance, one of the strings ``"text"``, ``"id"``,
        ``"tagName"``, or a single-key mapping ``{"attribute": name}`` /
        ``{"cssValue": name}``.

        Raises:
            ConfigurationError: If the value matches none of the above.
        """
        if isinstance(value, cls):
            return value

        if isinstance(value, str):
            simple = {
                VerificationKind.TEXT.value: VerificationKind.TEXT,
                VerificationKind.ID.value: VerificationKind.ID,
                VerificationKind.TAG_NAME.value: VerificationKind.TAG_NAME,
            }
            if value in simple:
                return cls(kind=simple[value])

        if isinstance(value, Mapping) and len(value) == 1:
            key, name = next(iter(value.items()))
            if key in (VerificationKind.ATTRIBUTE.value, VerificationKind.CSS_VALUE.value) and name:
                return cls(kind=VerificationKind(key), name=str(name))

        raise ConfigurationError(
            'Invalid verification type, allowed values: "text", "id", "tagName", '
            'or as mapping: {"attribute": name}, {"cssValue": name}',
            details={"type": repr(value)},
        )

    def __str__(self) -> str:
        if self.name:
            return f"{self.kind.value}[{self.name}]"
        return self.kind.value


class SuiteRun(BaseModel):
    """One execution of a test suite."""

    run_id: Optional[int] = None
    build_number: str = ""
    suite_name: str = ""
    branch: str = ""
    version: str = ""
    status: RunStatus = RunStatus.PENDING
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    ended_at: Optional[datetime] = None
    elapsed_seconds: float = 0.0


class CaseError(BaseModel):
    """A failure latched for a case run."""

    case_run_id: Optional[int] = None
    message: str
    error_url: str = ""
    screenshot: str = ""
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class CaseRun(BaseModel):
    """One execution of a test case within a suite run."""

    run_id: Optional[int] = None
    suite_run_id: Optional[int] = None
    name: str
    status: RunStatus = RunStatus.PENDING
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    ended_at: Optional[datetime] = None
    elapsed_seconds: float = 0.0
    error: Optional[CaseError] = None


class EvidenceBundle(BaseModel):
    """Diagnostic triple produced once per latched failure."""

    message: str
    trace: str
    screenshot: str = ""
    error_url: str = ""
