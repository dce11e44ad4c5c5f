"""Presentation helpers."""

from .error_presenter import ErrorPresenter

__all__ = ["ErrorPresenter"]
