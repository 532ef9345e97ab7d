"""
Browser emulation: element lookup and the action facade used by test cases.
"""

from webaccept.emulator.client import ActionFacade
from webaccept.emulator.locator import ElementLocator

__all__ = ["ActionFacade", "ElementLocator"]
