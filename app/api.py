"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.responses import JSONResponse

from app.schemas import (
    AttackSummary,
    DatasetInfoResponse,
    ErrorResponse,
    HealthResponse,
    HistoryPointResponse,
    RecordResponse,
    TimestampMatchResponse,
)
from services.errors import InvalidParameter, QueryError
from services.query_engine import DatasetState, QueryEngine, build_default_engine

router = APIRouter()

_ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_503_SERVICE_UNAVAILABLE: {"model": ErrorResponse},
}


def get_engine() -> QueryEngine:
    return build_default_engine()


async def query_error_handler(_request: Request, exc: QueryError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@router.get(
    "/api/data/info",
    response_model=DatasetInfoResponse,
    responses=_ERROR_RESPONSES,
    summary="Summary of the loaded dataset.",
)
async def dataset_info(
    engine: QueryEngine = Depends(get_engine),
) -> DatasetInfoResponse:
    return DatasetInfoResponse.from_info(engine.info())


@router.get(
    "/api/data/by-index/{index}",
    response_model=RecordResponse,
    responses={
        **_ERROR_RESPONSES,
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    },
    summary="Record at a position, with the previous record and active attack.",
)
async def record_by_index(
    index: str,
    engine: QueryEngine = Depends(get_engine),
) -> RecordResponse:
    return RecordResponse.from_view(engine.by_index(index))


@router.get(
    "/api/data/by-timestamp",
    response_model=TimestampMatchResponse,
    responses=_ERROR_RESPONSES,
    summary="Index of the record closest to a DD/MM/YYYY HH:MM:SS time.",
)
async def index_by_timestamp(
    time: Optional[str] = Query(None, description="Time as DD/MM/YYYY HH:MM:SS [AM|PM]."),
    engine: QueryEngine = Depends(get_engine),
) -> TimestampMatchResponse:
    return TimestampMatchResponse.from_match(engine.by_timestamp(time))


@router.get(
    "/api/data/history",
    response_model=List[HistoryPointResponse],
    responses=_ERROR_RESPONSES,
    summary="Readings of one device leading up to an index.",
)
async def device_history(
    device_id: Optional[str] = Query(None, alias="deviceId"),
    end_index: Optional[str] = Query(None, alias="endIndex"),
    seconds: Optional[str] = Query(None),
    mode: str = Query("records", description="'records' (one record per second) or 'time'."),
    engine: QueryEngine = Depends(get_engine),
) -> List[HistoryPointResponse]:
    if not device_id or not end_index or not seconds:
        raise InvalidParameter("Missing required parameters: deviceId, endIndex, seconds")
    points = engine.history(device_id, end_index, seconds, mode=mode)
    return [HistoryPointResponse.from_point(point) for point in points]


@router.get(
    "/api/attacks",
    response_model=List[AttackSummary],
    responses=_ERROR_RESPONSES,
    summary="Attack catalog ordered by attack number.",
)
async def list_attacks(
    engine: QueryEngine = Depends(get_engine),
) -> List[AttackSummary]:
    return [AttackSummary.from_interval(attack) for attack in engine.attacks()]


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={status.HTTP_503_SERVICE_UNAVAILABLE: {"model": HealthResponse}},
    summary="Health check endpoint; 503 once the dataset has failed to load.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck(
    response: Response,
    engine: QueryEngine = Depends(get_engine),
) -> HealthResponse:
    state = engine.state
    if state is DatasetState.failed:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="error", dataset=state.value, detail=engine.failure)
    return HealthResponse(status="ok", dataset=state.value, detail=engine.failure)
