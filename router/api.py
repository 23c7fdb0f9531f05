import asyncio
import json
import logging

from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from modules.geohash_cover import prepare_coverage
from modules.geohash_cover.schemas import GeohashCoverRequest, GeohashCoverResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/geohash", tags=["Geohash Coverage"])


@router.post(
    "/cover",
    response_model=GeohashCoverResponse,
    summary="Cover a shape with geohashes",
    description="Returns the geohash cells related to the shape under the chosen hash mode.",
)
async def cover_shape(payload: GeohashCoverRequest):
    plan = await asyncio.to_thread(prepare_coverage, payload.shape, payload)
    geohashes = await asyncio.to_thread(plan.run)
    logger.info(
        "Geohash cover: mode=%s precision=%d count=%d",
        plan.request.hash_mode, plan.precision, len(geohashes),
    )
    return GeohashCoverResponse(
        geohashes=geohashes,
        count=len(geohashes),
        precision=plan.precision,
        hash_mode=plan.request.hash_mode,
    )


@router.post(
    "/cover/stream",
    summary="Stream geohash rows",
    description="Streams one NDJSON line per grid row (south to north); rows may be empty.",
)
async def cover_shape_stream(payload: GeohashCoverRequest):
    # Geometry errors are raised here, before the response starts.
    plan = await asyncio.to_thread(prepare_coverage, payload.shape, payload)
    logger.info(
        "Geohash cover stream: mode=%s precision=%d",
        plan.request.hash_mode, plan.precision,
    )

    async def ndjson_rows():
        async for row in plan.astream():
            yield json.dumps(row) + "\n"

    return StreamingResponse(
        ndjson_rows(),
        media_type="application/x-ndjson",
        headers={"X-Geohash-Precision": str(plan.precision)},
    )
