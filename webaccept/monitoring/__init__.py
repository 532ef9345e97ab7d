"""
Logging, evidence and run recording for webaccept.
"""

from webaccept.monitoring.logger import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
