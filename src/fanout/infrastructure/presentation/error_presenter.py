"""User-facing rendering of errors."""

import traceback

from rich.markup import escape

from ...domain.exceptions import (
    ConfigurationError,
    EnumerationError,
    FanoutError,
    ParallelExecutionError,
)


class ErrorPresenter:
    """Turns exceptions into rich markup with a hint on what to do next."""

    HINTS = {
        ConfigurationError: "Check the job options and the configuration file (`fanout config --show`).",
        EnumerationError: "Check that every fileset/filelist directory and list file exists and is readable.",
        ParallelExecutionError: "Nothing was rolled back; re-run once the failing items are fixed.",
    }

    @classmethod
    def present(cls, error: BaseException, verbose: bool = False) -> str:
        """
        Format an error for the console.

        Args:
            error: The exception
            verbose: Append the traceback

        Returns:
            Rich markup string
        """
        if isinstance(error, KeyboardInterrupt):
            return "[yellow]Interrupted by user[/yellow]"

        if isinstance(error, FanoutError):
            title = type(error).__name__
        else:
            title = f"Unexpected error ({type(error).__name__})"

        parts = [f"[red bold]{title}:[/red bold] {escape(str(error))}"]

        if isinstance(error, ParallelExecutionError):
            for outcome in error.summary.failures:
                parts.append(f"  [red]x[/red] {escape(outcome.unit.label)}: {escape(outcome.error or '')}")

        for error_type, hint in cls.HINTS.items():
            if isinstance(error, error_type):
                parts.append(f"[dim]{escape(hint)}[/dim]")
                break

        if verbose:
            formatted = "".join(
                traceback.format_exception(type(error), error, error.__traceback__)
            )
            parts.append(f"[dim]{escape(formatted)}[/dim]")

        return "\n".join(parts)
