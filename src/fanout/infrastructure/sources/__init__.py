"""Filesystem item sources."""

from .filesystem import (
    ConfiguredFileListSource,
    DirectoryScanner,
    FileSetSource,
    compile_pattern,
)

__all__ = [
    "ConfiguredFileListSource",
    "DirectoryScanner",
    "FileSetSource",
    "compile_pattern",
]
