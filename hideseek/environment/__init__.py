"""
Environment module for hideseek.
Contains the PettingZoo-based hide-and-seek environment.
"""

from .hide_seek_env import HideAndSeekEnv

__all__ = ["HideAndSeekEnv"]
