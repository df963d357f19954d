from __future__ import annotations

from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from app.schemas import AttackSummary, DatasetInfoResponse
from services.errors import DataNotReady
from services.query_engine import DatasetState, QueryEngine, build_default_engine


templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))


def get_engine() -> QueryEngine:
    return build_default_engine()


router = APIRouter(include_in_schema=False)


@router.get("/ui", name="ui_index", response_class=HTMLResponse)
async def ui_index(
    request: Request,
    engine: QueryEngine = Depends(get_engine),
) -> HTMLResponse:
    info: Optional[DatasetInfoResponse] = None
    attacks: list[AttackSummary] = []
    try:
        info = DatasetInfoResponse.from_info(engine.info())
        attacks = [AttackSummary.from_interval(attack) for attack in engine.attacks()]
    except DataNotReady:
        info = None

    should_poll = engine.state is DatasetState.loading
    return templates.TemplateResponse(
        request,
        "ui/index.html",
        {
            "info": info,
            "attacks": attacks,
            "state": engine.state.value,
            "failure": engine.failure,
            "should_poll": should_poll,
        },
    )
