"""Application commands."""

from .foreach_parallel import ForeachParallelCommand, ForeachParallelHandler

__all__ = ["ForeachParallelCommand", "ForeachParallelHandler"]
