"""
Utility package initialization.
"""

from .async_utils import gather_settled, wait_for_stop
from .logging import get_logger, setup_logging

__all__ = ["gather_settled", "wait_for_stop", "get_logger", "setup_logging"]
