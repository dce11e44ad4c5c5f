"""Filesystem-backed item sources: file lists and directory scans."""

import os
import re
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Pattern, Sequence, Tuple

from ...domain.exceptions import EnumerationError
from ...domain.models.item_source import (
    DirectoryScanSource,
    FileListSource,
    SourceItem,
)
from ..config.config_models import FileListConfig, FileSetConfig
from ..logging import FanoutLogger


def compile_pattern(pattern: str) -> Pattern[str]:
    """
    Compile an Ant-style pattern matched against POSIX relative paths.

    `**` spans any number of directories, `*` and `?` stay inside one
    path segment, and a trailing `/` means `/**`.
    """
    pattern = pattern.replace("\\", "/").lstrip("/")
    if pattern.endswith("/"):
        pattern += "**"

    parts = pattern.split("/")
    regex = ""
    for index, part in enumerate(parts):
        last = index == len(parts) - 1
        if part == "**":
            if not last:
                regex += "(?:[^/]+/)*"
            elif regex.endswith("/"):
                regex = regex[:-1] + "(?:/.*)?"
            else:
                regex += ".*"
            continue

        for char in part:
            if char == "*":
                regex += "[^/]*"
            elif char == "?":
                regex += "[^/]"
            else:
                regex += re.escape(char)
        if not last:
            regex += "/"

    return re.compile(regex)


class DirectoryScanner:
    """
    Walks a directory tree and splits it into included files and dirs.

    Output is sorted so repeated scans of the same tree agree. The base
    directory itself is never reported.
    """

    def __init__(
        self,
        base_dir: str,
        includes: Sequence[str] = ("**",),
        excludes: Sequence[str] = (),
    ):
        self.base_dir = base_dir
        self._includes = [compile_pattern(p) for p in (includes or ["**"])]
        self._excludes = [compile_pattern(p) for p in excludes]

    def is_included(self, relative_posix: str) -> bool:
        if not any(p.fullmatch(relative_posix) for p in self._includes):
            return False
        return not any(p.fullmatch(relative_posix) for p in self._excludes)

    def scan(self) -> Tuple[List[str], List[str]]:
        """
        Scan the tree.

        Returns:
            (included files, included directories) as native relative paths

        Raises:
            EnumerationError: Base directory missing or unreadable
        """
        if not os.path.isdir(self.base_dir):
            raise EnumerationError(
                f"Directory does not exist or is not a directory: {self.base_dir}",
                source=self.base_dir,
            )

        def on_error(error: OSError):
            raise EnumerationError(
                f"Cannot scan {error.filename}: {error.strerror}",
                source=self.base_dir,
            ) from error

        files: List[str] = []
        dirs: List[str] = []
        for root, dirnames, filenames in os.walk(self.base_dir, onerror=on_error):
            dirnames.sort()
            rel_root = os.path.relpath(root, self.base_dir)
            prefix = "" if rel_root == os.curdir else rel_root + os.sep

            for name in dirnames:
                relative = prefix + name
                if self.is_included(Path(relative).as_posix()):
                    dirs.append(relative)
            for name in sorted(filenames):
                relative = prefix + name
                if self.is_included(Path(relative).as_posix()):
                    files.append(relative)

        return sorted(files), sorted(dirs)


class FileSetSource(DirectoryScanSource):
    """Directory scan source configured by a fileset; scans on enumeration."""

    def __init__(self, config: FileSetConfig, default_exclusions: Iterable[str] = ()):
        super().__init__(os.path.abspath(config.dir), files=[], dirs=[])
        excludes = list(config.excludes)
        if config.default_excludes:
            excludes.extend(default_exclusions)
        self.scanner = DirectoryScanner(self.base_dir, config.includes, excludes)
        self.logger = FanoutLogger.get_instance()

    def _iter_items(self) -> Iterator[SourceItem]:
        self.files, self.dirs = self.scanner.scan()
        self.logger.debug(
            f"Scanned {self.base_dir}",
            extra={"files": len(self.files), "dirs": len(self.dirs)}
        )
        yield from super()._iter_items()


class ConfiguredFileListSource(FileListSource):
    """File list source from inline names and/or a list file."""

    def __init__(self, config: FileListConfig):
        super().__init__(os.path.abspath(config.dir), files=list(config.files))
        self.listfile: Optional[str] = config.listfile

    def _read_listfile(self) -> List[str]:
        try:
            with open(self.listfile, "r", encoding="utf-8") as f:
                return [line.strip() for line in f if line.strip()]
        except OSError as e:
            raise EnumerationError(
                f"Cannot read list file {self.listfile}: {e.strerror or e}",
                source=self.describe(),
            ) from e

    def _iter_items(self) -> Iterator[SourceItem]:
        if self.listfile:
            self.files = list(self.files) + self._read_listfile()
        yield from super()._iter_items()
