"""
Command-line interface for ndkapk.
"""

from .main import main_cli

__all__ = ["main_cli"]
