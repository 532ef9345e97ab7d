"""
Suite and case orchestration.
"""

from webaccept.orchestration.case import TestCase
from webaccept.orchestration.factory import SuiteFactory
from webaccept.orchestration.registry import CaseRegistry, register_case, registry
from webaccept.orchestration.suite import TestSuite

__all__ = [
    "TestCase",
    "TestSuite",
    "CaseRegistry",
    "SuiteFactory",
    "register_case",
    "registry",
]
