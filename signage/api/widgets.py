from __future__ import annotations

import logging
from typing import Any, Dict, List, Literal, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from pydantic import BaseModel

from ..app import SignageState, get_app_state
from ..widgets import TimelineSlot, Widget, WidgetState, WidgetStateError, WidgetTransitionError

LOGGER = logging.getLogger(__name__)

router = APIRouter(tags=["widgets"])


class WidgetSummary(BaseModel):
    id: Optional[Union[int, str]] = None
    type: Optional[str] = None
    name: Optional[str] = None
    state: str
    duration: float
    priority: int
    has_content_to_play: bool
    broken: bool

    @classmethod
    def from_widget(cls, widget: Widget) -> "WidgetSummary":
        return cls(
            id=widget.id,
            type=widget.type,
            name=widget.name,
            state=widget.state.name,
            duration=widget.duration,
            priority=widget.priority,
            has_content_to_play=widget.has_content_to_play,
            broken=widget.broken,
        )


class WidgetListResponse(BaseModel):
    widgets: List[WidgetSummary]


class SlotInfo(BaseModel):
    duration: float
    group_identifier: Optional[str] = None
    params: Optional[Dict[str, Any]] = None

    @classmethod
    def from_slot(cls, slot: TimelineSlot) -> "SlotInfo":
        return cls(
            duration=slot.duration,
            group_identifier=slot.group_identifier,
            params=dict(slot.params) if slot.params else None,
        )


class SlotListResponse(BaseModel):
    widget_id: Union[int, str]
    slots: List[SlotInfo]


def _get_widget(state: SignageState, widget_id: str) -> Widget:
    widget = state.get_widget(widget_id)
    if widget is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown widget {widget_id}")
    return widget


@router.get("/widgets", response_model=WidgetListResponse)
async def list_widgets(state: SignageState = Depends(get_app_state)) -> WidgetListResponse:
    return WidgetListResponse(widgets=[WidgetSummary.from_widget(w) for w in state.widgets.values()])


@router.get("/widgets/{widget_id}/slots", response_model=SlotListResponse)
async def preview_slots(
    widget_id: str = Path(..., description="Widget id"),
    num_slots: int = Query(1, ge=0, le=1000),
    max_duration: float = Query(60, ge=0),
    state: SignageState = Depends(get_app_state),
) -> SlotListResponse:
    widget = _get_widget(state, widget_id)
    slots = widget.query_slots(num_slots, max_duration)
    return SlotListResponse(widget_id=widget_id, slots=[SlotInfo.from_slot(s) for s in slots])


@router.post("/widgets/{widget_id}/{action}", response_model=WidgetSummary)
async def control_widget(
    widget_id: str = Path(..., description="Widget id"),
    action: Literal["play", "pause", "stop"] = Path(..., description="Lifecycle action"),
    state: SignageState = Depends(get_app_state),
) -> WidgetSummary:
    widget = _get_widget(state, widget_id)
    try:
        if action == "play":
            if widget.state is WidgetState.STOPPED:
                await widget.get_ready_for_display()
            await widget.play()
        elif action == "pause":
            await widget.pause()
        else:
            await widget.stop()
    except (WidgetStateError, WidgetTransitionError) as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    LOGGER.info("Widget %s: %s requested, now %s", widget.id, action, widget.state.name)
    return WidgetSummary.from_widget(widget)
