"""Callee invoker implementations."""

from .command_invoker import CommandInvoker
from .registry_invoker import TargetRegistry, TargetFunction

__all__ = ["CommandInvoker", "TargetRegistry", "TargetFunction"]
