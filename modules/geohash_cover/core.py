import asyncio
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Iterator, List, Mapping, Optional, Union

from .classifier import CellClassifier
from .emitter import Row, RowChannel, RowEmitter
from .grid import GeohashGrid
from .precision import select_precision
from .schemas import CoverageOptions, CoverageRequest
from .shapes import BoundingBox, Shape, normalize_shapes

logger = logging.getLogger(__name__)

Options = Union[CoverageOptions, Mapping[str, Any], None]


def _resolve_request(options: Options, overrides: Mapping[str, Any]) -> CoverageRequest:
    if options is None:
        data = {}
    elif isinstance(options, CoverageOptions):
        data = options.model_dump()
        data["custom_writer"] = getattr(options, "custom_writer", None)
    elif isinstance(options, Mapping):
        data = dict(options)
    else:
        raise TypeError(f"Options must be a mapping or CoverageOptions, got {type(options).__name__}")
    data.update(overrides)
    return CoverageRequest.model_validate(data)


@dataclass
class CoveragePlan:
    """Normalized shapes plus the settings fixed for one coverage call."""
    shapes: List[Shape]
    bbox: BoundingBox
    precision: int
    request: CoverageRequest

    def emitter(self, writer: Any = None) -> RowEmitter:
        return RowEmitter(
            writer=writer if writer is not None else self.request.custom_writer,
            hash_mode=self.request.hash_mode,
            allow_duplicates=self.request.allow_duplicates,
        )

    def iter_rows(self, emitter: RowEmitter) -> Iterator[Row]:
        """
        Lazily yield accepted rows.

        Envelope mode walks the union bbox once without classification.
        Other modes walk each piece's own bbox and classify against that
        piece only; holes belong to their polygon piece.
        """
        if self.request.hash_mode == "envelope":
            for row in GeohashGrid(self.bbox, self.precision).rows():
                yield emitter.select((cell.geohash, None) for cell in row)
            return

        for shape in self.shapes:
            for piece in shape.pieces:
                classifier = CellClassifier(piece, self.precision, self.request.min_intersect)
                for row in GeohashGrid(piece.bbox, self.precision).rows():
                    yield emitter.select(
                        (cell.geohash, classifier.classify(cell).relation) for cell in row
                    )

    def run(self, writer: Any = None) -> Optional[List[str]]:
        emitter = self.emitter(writer)
        for row in self.iter_rows(emitter):
            emitter.flush(row)
        logger.debug("Coverage done: %d rows at precision %d", emitter.rows_flushed, self.precision)
        return emitter.close()

    async def arun(self, writer: Any = None) -> Optional[List[str]]:
        emitter = self.emitter(writer)
        rows = self.iter_rows(emitter)
        while True:
            # Classification is CPU-bound shapely work; keep it off the event loop.
            row = await asyncio.to_thread(next, rows, None)
            if row is None:
                break
            await emitter.aflush(row)
        logger.debug("Coverage done: %d rows at precision %d", emitter.rows_flushed, self.precision)
        return emitter.close()

    async def _produce(self, channel: RowChannel) -> None:
        try:
            await self.arun(channel)
        except Exception:
            await channel.close()
            raise
        await channel.close()

    async def astream(self) -> AsyncIterator[Row]:
        """Yield rows through a one-row-in-flight channel; producer errors re-raise here."""
        channel = RowChannel()
        producer = asyncio.create_task(self._produce(channel))
        try:
            async for row in channel:
                yield row
            await producer
        finally:
            if not producer.done():
                producer.cancel()


def prepare_coverage(shape: Any, options: Options = None, **overrides: Any) -> CoveragePlan:
    """
    Normalize ``shape`` and fix the options for a coverage call.

    Geometry errors surface here, before any cell is enumerated.
    """
    request = _resolve_request(options, overrides)
    shapes = normalize_shapes(shape)
    bbox = BoundingBox.union(s.bbox for s in shapes)
    precision = select_precision(bbox, request.precision)
    logger.debug(
        "Prepared coverage: %d shape(s), bbox=%s, precision=%d, mode=%s",
        len(shapes), tuple(bbox), precision, request.hash_mode,
    )
    return CoveragePlan(shapes=shapes, bbox=bbox, precision=precision, request=request)


def shape_to_geohashes(shape: Any, options: Options = None, **overrides: Any) -> Optional[List[str]]:
    """
    Geohashes covering ``shape``.

    Returns the flat list in row order, or None when ``custom_writer`` is
    set (rows go to the writer, one at a time).

    Example:
        shape_to_geohashes([[13.33, 52.49], [13.37, 52.50], [13.42, 52.50]], precision=5)
    """
    return prepare_coverage(shape, options, **overrides).run()


async def ashape_to_geohashes(shape: Any, options: Options = None, **overrides: Any) -> Optional[List[str]]:
    """Async variant; awaits the writer's acknowledgement of each row."""
    return await prepare_coverage(shape, options, **overrides).arun()


def iter_geohash_rows(shape: Any, options: Options = None, **overrides: Any) -> Iterator[Row]:
    """Pull accepted rows one at a time; any ``custom_writer`` is not used."""
    plan = prepare_coverage(shape, options, **overrides)
    emitter = RowEmitter(
        writer=lambda row: None,
        hash_mode=plan.request.hash_mode,
        allow_duplicates=plan.request.allow_duplicates,
    )
    return plan.iter_rows(emitter)
