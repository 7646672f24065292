"""Filtered, paginated view over the most recent library scan."""

from __future__ import annotations

import math
from typing import Optional, Sequence

from mediashelf.library.classifier import MediaKind
from mediashelf.library.models import FileRecord, KindCounts, ScanResult

KIND_FILTERS: tuple[str, ...] = ("all", *(kind.value for kind in MediaKind))
DEFAULT_PAGE_SIZE = 50


class LibraryState:
    """Own the scanned file set and derive the filtered, paginated view.

    The file set is replaced wholesale by each scan. Changing either filter
    resets the current page to the first one.
    """

    def __init__(self, *, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self.page_size = page_size
        self.root: Optional[str] = None
        self._files: tuple[FileRecord, ...] = ()
        self._by_id: dict[str, FileRecord] = {}
        self._filtered: tuple[FileRecord, ...] = ()
        self.text_filter = ""
        self.kind_filter: str = "all"
        self.page = 0
        self.selected: Optional[FileRecord] = None

    @property
    def files(self) -> tuple[FileRecord, ...]:
        return self._files

    @property
    def filtered(self) -> tuple[FileRecord, ...]:
        return self._filtered

    def replace_files(self, scan: ScanResult | Sequence[FileRecord]) -> None:
        """Replace the file set with the outcome of a new scan."""
        if isinstance(scan, ScanResult):
            self.root = scan.root if scan.found else None
            records = scan.files
        else:
            records = scan
        self._files = tuple(records)
        self._by_id = {record.id: record for record in self._files}
        if self.selected is not None and self.selected.id not in self._by_id:
            self.selected = None
        self._refilter()

    def set_text_filter(self, text: str) -> None:
        self.text_filter = text or ""
        self._refilter()

    def set_kind_filter(self, kind: str | MediaKind) -> None:
        value = kind.value if isinstance(kind, MediaKind) else kind
        if value not in KIND_FILTERS:
            raise ValueError(f"Unknown kind filter {kind!r}; expected one of {KIND_FILTERS}")
        self.kind_filter = value
        self._refilter()

    @property
    def page_count(self) -> int:
        return max(1, math.ceil(len(self._filtered) / self.page_size))

    def set_page(self, page: int) -> int:
        """Move to ``page`` clamped to the valid range and return the page used."""
        self.page = min(max(page, 0), self.page_count - 1)
        return self.page

    def next_page(self) -> int:
        return self.set_page(self.page + 1)

    def prev_page(self) -> int:
        return self.set_page(self.page - 1)

    def current_page_files(self) -> list[FileRecord]:
        start = self.page * self.page_size
        return list(self._filtered[start : start + self.page_size])

    def page_files(self, page: int) -> list[FileRecord]:
        """Return the files on ``page`` after clamping, and make it current."""
        self.set_page(page)
        return self.current_page_files()

    def stats(self) -> KindCounts:
        return KindCounts.from_files(list(self._files))

    def find(self, file_id: str) -> Optional[FileRecord]:
        return self._by_id.get(file_id)

    def select(self, file_id: str) -> Optional[FileRecord]:
        """Mark the file with ``file_id`` as opened in a viewer."""
        self.selected = self._by_id.get(file_id)
        return self.selected

    def clear_selection(self) -> None:
        self.selected = None

    def _matches(self, record: FileRecord, needle: str) -> bool:
        if self.kind_filter != "all" and record.kind.value != self.kind_filter:
            return False
        if not needle:
            return True
        return needle in record.name.lower() or needle in record.relative_path.lower()

    def _refilter(self) -> None:
        needle = self.text_filter.lower()
        self._filtered = tuple(record for record in self._files if self._matches(record, needle))
        self.page = 0


__all__ = ["LibraryState", "KIND_FILTERS", "DEFAULT_PAGE_SIZE"]
