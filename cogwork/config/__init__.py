"""
Configuration package.
"""

from cogwork.config.settings import CogworkSettings, settings

__all__ = ["CogworkSettings", "settings"]
