"""
Browser automation module exports.
"""

from webaccept.browser.driver import PlaywrightDriver, PlaywrightElement, to_selector

__all__ = [
    "PlaywrightDriver",
    "PlaywrightElement",
    "to_selector",
]
