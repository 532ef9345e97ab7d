"""
Visual regression helpers.
"""

from webaccept.visual.compare import ImageComparer

__all__ = ["ImageComparer"]
