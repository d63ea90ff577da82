"""
Editable source buffer addressed in original coordinates.

Every edit is recorded against the untouched original text, so positions
found by the analyzer stay valid no matter how many edits were applied
before.  The buffer can render the final text and an explicit edit map
(original range -> replacement) without diffing.
"""

from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass

from .errors import ContractError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EditMapping:
    """One recorded change: original ``[start, end)`` became ``replacement``.

    Insertions have ``start == end``.
    """
    start: int
    end: int
    replacement: str


@dataclass
class _Chunk:
    start: int
    end: int
    content: str
    intro: str = ""
    outro: str = ""
    edited: bool = False

    def clear(self) -> None:
        self.content = ""
        self.intro = ""
        self.outro = ""
        self.edited = True

    def rendered(self) -> str:
        return self.intro + self.content + self.outro


class SourceBuffer:
    """Chunked text buffer supporting overwrite, remove and anchored inserts.

    Inserted text is anchored either to the chunk that *ends* at an index
    (``*_left``) or to the chunk that *starts* at it (``*_right``).  Removing
    or overwriting a range also drops text anchored strictly inside that
    range; text anchored at its two edges is kept.
    """

    def __init__(self, original: str) -> None:
        self.original = original
        self._intro = ""
        self._outro = ""
        first = _Chunk(0, len(original), original)
        self._starts: list[int] = [0]
        self._by_start: dict[int, _Chunk] = {0: first}
        self._by_end: dict[int, _Chunk] = {len(original): first}

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check_index(self, index: int) -> None:
        if not isinstance(index, int) or index < 0 or index > len(self.original):
            raise ContractError(
                f"Index {index!r} is out of bounds (0..{len(self.original)})"
            )

    def _check_range(self, start: int, end: int) -> None:
        self._check_index(start)
        self._check_index(end)
        if start > end:
            raise ContractError(f"Invalid range [{start}, {end})")

    def _split(self, index: int) -> None:
        if index in self._by_start or index in self._by_end:
            return
        pos = bisect.bisect_right(self._starts, index) - 1
        chunk = self._by_start[self._starts[pos]]
        if chunk.edited:
            raise ContractError(
                f"Cannot split at {index}: range [{chunk.start}, {chunk.end}) "
                "was already edited"
            )
        tail = _Chunk(index, chunk.end, self.original[index:chunk.end])
        tail.outro = chunk.outro
        chunk.outro = ""
        chunk.end = index
        chunk.content = self.original[chunk.start:index]

        self._by_end[index] = chunk
        self._by_end[tail.end] = tail
        self._by_start[index] = tail
        self._starts.insert(pos + 1, index)

    def _chunks(self):
        for start in self._starts:
            yield self._by_start[start]

    def _chunks_in(self, start: int, end: int) -> list[_Chunk]:
        lo = bisect.bisect_left(self._starts, start)
        hi = bisect.bisect_left(self._starts, end)
        return [self._by_start[s] for s in self._starts[lo:hi]]

    def _clear(self, start: int, end: int) -> list[_Chunk]:
        """Blank ``[start, end)``, keeping text anchored at its two edges."""
        self._split(start)
        self._split(end)
        chunks = self._chunks_in(start, end)
        intro, outro = chunks[0].intro, chunks[-1].outro
        for chunk in chunks:
            chunk.clear()
        chunks[0].intro = intro
        chunks[-1].outro = outro
        return chunks

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def overwrite(self, start: int, end: int, content: str) -> "SourceBuffer":
        """Replace original ``[start, end)`` with *content*."""
        self._check_range(start, end)
        if start == end:
            raise ContractError(
                "Cannot overwrite a zero-length range, insert text instead"
            )
        chunks = self._clear(start, end)
        chunks[0].content = content
        return self

    def remove(self, start: int, end: int) -> "SourceBuffer":
        """Delete original ``[start, end)``."""
        self._check_range(start, end)
        if start == end:
            return self
        self._clear(start, end)
        return self

    def append_left(self, index: int, text: str) -> "SourceBuffer":
        self._check_index(index)
        self._split(index)
        chunk = self._by_end.get(index)
        if chunk is not None:
            chunk.outro += text
        else:
            self._intro += text
        return self

    def prepend_left(self, index: int, text: str) -> "SourceBuffer":
        self._check_index(index)
        self._split(index)
        chunk = self._by_end.get(index)
        if chunk is not None:
            chunk.outro = text + chunk.outro
        else:
            self._intro = text + self._intro
        return self

    def append_right(self, index: int, text: str) -> "SourceBuffer":
        self._check_index(index)
        self._split(index)
        chunk = self._by_start.get(index)
        if chunk is not None:
            chunk.intro += text
        else:
            self._outro += text
        return self

    def prepend_right(self, index: int, text: str) -> "SourceBuffer":
        self._check_index(index)
        self._split(index)
        chunk = self._by_start.get(index)
        if chunk is not None:
            chunk.intro = text + chunk.intro
        else:
            self._outro = text + self._outro
        return self

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def slice(self, start: int, end: int) -> str:
        """Return the *original* text of ``[start, end)``."""
        self._check_range(start, end)
        return self.original[start:end]

    def has_changed(self) -> bool:
        if self._intro or self._outro:
            return True
        return any(
            chunk.edited or chunk.intro or chunk.outro
            for chunk in self._chunks()
        )

    def __str__(self) -> str:
        body = "".join(chunk.rendered() for chunk in self._chunks())
        return self._intro + body + self._outro

    def __len__(self) -> int:
        return len(str(self))

    def edit_map(self) -> list[EditMapping]:
        """Return the recorded changes as ordered, merged mappings."""
        raw: list[EditMapping] = []
        if self._intro:
            raw.append(EditMapping(0, 0, self._intro))
        for chunk in self._chunks():
            if chunk.intro:
                raw.append(EditMapping(chunk.start, chunk.start, chunk.intro))
            if chunk.edited:
                raw.append(EditMapping(chunk.start, chunk.end, chunk.content))
            if chunk.outro:
                raw.append(EditMapping(chunk.end, chunk.end, chunk.outro))
        if self._outro:
            end = len(self.original)
            raw.append(EditMapping(end, end, self._outro))

        merged: list[EditMapping] = []
        for mapping in raw:
            if merged and merged[-1].end == mapping.start:
                prev = merged.pop()
                mapping = EditMapping(
                    prev.start, mapping.end, prev.replacement + mapping.replacement
                )
            merged.append(mapping)
        return merged

    def map_offset(self, pos: int) -> int:
        """Return the offset in the final text of original position *pos*.

        Positions inside an edited range map to the start of its replacement.
        """
        self._check_index(pos)
        offset = len(self._intro)
        for chunk in self._chunks():
            if chunk.start <= pos < chunk.end:
                offset += len(chunk.intro)
                if not chunk.edited:
                    offset += pos - chunk.start
                return offset
            offset += len(chunk.rendered())
        return offset
