"""Logging infrastructure."""

from .logger import FanoutLogger

__all__ = ["FanoutLogger"]
