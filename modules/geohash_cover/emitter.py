import asyncio
import inspect
import logging
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Set, Tuple

from core.exceptions import SinkError

from .classifier import CellRelation
from .schemas import HashMode

logger = logging.getLogger(__name__)

Row = List[str]

_ACCEPTED_RELATIONS = {
    "intersect": frozenset({CellRelation.INSIDE, CellRelation.BOUNDARY}),
    "border": frozenset({CellRelation.BOUNDARY}),
    "insideOnly": frozenset({CellRelation.INSIDE}),
}


def accepts(hash_mode: str, relation: Optional[CellRelation]) -> bool:
    """Coverage policy; envelope keeps every enumerated cell unclassified."""
    if hash_mode == "envelope":
        return True
    try:
        return relation in _ACCEPTED_RELATIONS[hash_mode]
    except KeyError:
        raise ValueError(f"Unknown hash mode: {hash_mode!r}") from None


class EmitterState(str, Enum):
    SCANNING = "scanning"
    FLUSHING = "flushing"
    DONE = "done"


class GeohashListWriter:
    """Default in-process sink: concatenates rows into one list."""

    def __init__(self):
        self.geohashes: List[str] = []
        self.row_count = 0

    def write(self, row: Row) -> None:
        self.geohashes.extend(row)
        self.row_count += 1


_CLOSED = object()


class RowChannel:
    """
    Async handoff holding at most one row in flight.

    The producer's ``write`` suspends while the previous row is still
    unconsumed; consumers iterate with ``async for`` until ``close``.
    """

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=1)
        self._drained = False

    async def write(self, row: Row) -> None:
        await self._queue.put(list(row))

    async def close(self) -> None:
        await self._queue.put(_CLOSED)

    def __aiter__(self):
        return self

    async def __anext__(self) -> Row:
        if self._drained:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            self._drained = True
            raise StopAsyncIteration
        return item


def _write_callable(writer: Any) -> Callable[[Row], Any]:
    write = getattr(writer, "write", writer)
    if not callable(write):
        raise TypeError(f"Row writer must be callable or expose write(), got {type(writer).__name__}")
    return write


class RowEmitter:
    """
    Applies the coverage mode, drops repeats when requested, and hands each
    row to the writer.

    State moves SCANNING -> FLUSHING -> SCANNING per row and ends in DONE
    after ``close`` or a writer failure.
    """

    def __init__(
        self,
        writer: Any = None,
        hash_mode: HashMode = "intersect",
        allow_duplicates: bool = True,
    ):
        self.writer = writer if writer is not None else GeohashListWriter()
        self._write = _write_callable(self.writer)
        accepts(hash_mode, None)  # validates the mode up front
        self.hash_mode = hash_mode
        self.state = EmitterState.SCANNING
        self.rows_flushed = 0
        self._seen: Optional[Set[str]] = None if allow_duplicates else set()

    def select(self, cells: Iterable[Tuple[str, Optional[CellRelation]]]) -> Row:
        row = [geohash for geohash, relation in cells if accepts(self.hash_mode, relation)]
        if self._seen is None:
            return row
        fresh: Row = []
        for geohash in row:
            if geohash in self._seen:
                continue
            self._seen.add(geohash)
            fresh.append(geohash)
        return fresh

    def _begin_flush(self) -> None:
        if self.state is EmitterState.DONE:
            raise RuntimeError("Emitter is closed")
        self.state = EmitterState.FLUSHING

    def _fail(self, exc: Exception) -> SinkError:
        self.state = EmitterState.DONE
        logger.error("Row writer failed on row %d: %s", self.rows_flushed, exc)
        return SinkError(
            f"Row writer failed on row {self.rows_flushed}",
            row_index=self.rows_flushed,
            original_error=str(exc),
        )

    def _acknowledged(self) -> None:
        self.rows_flushed += 1
        self.state = EmitterState.SCANNING

    def flush(self, row: Row) -> None:
        self._begin_flush()
        try:
            self._write(row)
        except SinkError:
            self.state = EmitterState.DONE
            raise
        except Exception as exc:
            raise self._fail(exc) from exc
        self._acknowledged()

    async def aflush(self, row: Row) -> None:
        self._begin_flush()
        try:
            result = self._write(row)
            if inspect.isawaitable(result):
                await result
        except SinkError:
            self.state = EmitterState.DONE
            raise
        except Exception as exc:
            raise self._fail(exc) from exc
        self._acknowledged()

    def close(self) -> Optional[List[str]]:
        """Finish the call; returns the accumulated list for the default writer."""
        self.state = EmitterState.DONE
        if isinstance(self.writer, GeohashListWriter):
            return self.writer.geohashes
        return None
