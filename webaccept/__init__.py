"""
webaccept - browser-driven acceptance test harness.
"""

__version__ = "0.4.0"
