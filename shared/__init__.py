"""
Elfdump Shared Module
=====================

Configuration, structured logging and console helpers used by the
Elfdump tool.
"""

from shared.config import ElfdumpConfig, get_config

__all__ = ["ElfdumpConfig", "get_config"]
