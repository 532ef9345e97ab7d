"""
Core module exports.
"""

from webaccept.core.types import (
    By,
    CaseError,
    CaseRun,
    ElementState,
    EvidenceBundle,
    Locator,
    LocatorStrategy,
    PollOutcome,
    RunStatus,
    SelectMode,
    SuiteRun,
    VerificationKind,
    VerificationType,
)
from webaccept.core.interfaces import (
    BrowserDriver,
    EvidenceSink,
    RunRecorder,
    WebElement,
)
from webaccept.core.latch import FailureLatch
from webaccept.core.timer import Timer

__all__ = [
    # Interfaces
    "BrowserDriver",
    "WebElement",
    "EvidenceSink",
    "RunRecorder",
    # Types
    "By",
    "Locator",
    "LocatorStrategy",
    "ElementState",
    "SelectMode",
    "PollOutcome",
    "RunStatus",
    "VerificationKind",
    "VerificationType",
    "SuiteRun",
    "CaseRun",
    "CaseError",
    "EvidenceBundle",
    # Primitives
    "FailureLatch",
    "Timer",
]
