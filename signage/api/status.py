from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..app import SignageState, get_app_state

router = APIRouter(tags=["status"])


class HealthResponse(BaseModel):
    ok: bool
    scheduler_running: bool
    widget_count: int


class JobInfo(BaseModel):
    id: str
    name: str
    next_run: Optional[str] = None
    trigger: str
    paused: bool


class SchedulerStatusResponse(BaseModel):
    running: bool
    jobs: List[JobInfo]


@router.get("/health", response_model=HealthResponse)
async def health(state: SignageState = Depends(get_app_state)) -> HealthResponse:
    return HealthResponse(
        ok=True,
        scheduler_running=state.scheduler.started,
        widget_count=len(state.widgets),
    )


@router.get("/scheduler", response_model=SchedulerStatusResponse)
async def scheduler_status(state: SignageState = Depends(get_app_state)) -> SchedulerStatusResponse:
    return SchedulerStatusResponse.model_validate(state.scheduler.status())
