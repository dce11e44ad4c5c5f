"""Item sources: the origins of work items."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Optional

from ..exceptions import EnumerationError


class ItemKind(str, Enum):
    """What a raw item identifies."""
    LIST_ENTRY = "list_entry"
    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class SourceItem:
    """A raw item produced by a source."""
    value: str
    kind: ItemKind
    base_dir: Optional[str] = None


class ItemSource(ABC):
    """
    Single-pass producer of raw items.

    enumerate() hands out a lazy iterator exactly once; calling it again
    raises EnumerationError.
    """

    def __init__(self):
        self._consumed = False

    def enumerate(self) -> Iterator[SourceItem]:
        """
        Enumerate the items of this source.

        Returns:
            Lazy iterator of SourceItem

        Raises:
            EnumerationError: If the source was already enumerated
        """
        if self._consumed:
            raise EnumerationError(
                f"{self.describe()} has already been enumerated",
                source=self.describe(),
            )
        self._consumed = True
        return self._iter_items()

    @abstractmethod
    def _iter_items(self) -> Iterator[SourceItem]:
        """Yield the items of this source."""
        pass

    @abstractmethod
    def describe(self) -> str:
        """Short description used in logs and errors."""
        pass


class DelimitedListSource(ItemSource):
    """Items taken from a delimiter-separated string; tokens are trimmed."""

    def __init__(self, raw: str, delimiter: str = ","):
        super().__init__()
        self.raw = raw
        self.delimiter = delimiter

    def _iter_items(self) -> Iterator[SourceItem]:
        for token in self.raw.split(self.delimiter):
            yield SourceItem(value=token.strip(), kind=ItemKind.LIST_ENTRY)

    def describe(self) -> str:
        return f"list (delimiter {self.delimiter!r})"


class FileListSource(ItemSource):
    """Explicit relative file names under a base directory."""

    def __init__(self, base_dir: str, files: Iterable[str]):
        super().__init__()
        self.base_dir = base_dir
        self.files = files

    def _iter_items(self) -> Iterator[SourceItem]:
        for name in self.files:
            yield SourceItem(value=name, kind=ItemKind.FILE, base_dir=self.base_dir)

    def describe(self) -> str:
        return f"filelist {self.base_dir}"


class DirectoryScanSource(ItemSource):
    """Files and directories found under a base directory; files come first."""

    def __init__(self, base_dir: str, files: Iterable[str], dirs: Iterable[str]):
        super().__init__()
        self.base_dir = base_dir
        self.files = files
        self.dirs = dirs

    def _iter_items(self) -> Iterator[SourceItem]:
        for name in self.files:
            yield SourceItem(value=name, kind=ItemKind.FILE, base_dir=self.base_dir)
        for name in self.dirs:
            yield SourceItem(value=name, kind=ItemKind.DIRECTORY, base_dir=self.base_dir)

    def describe(self) -> str:
        return f"fileset {self.base_dir}"
