"""Patch operations: the unit of change exchanged between client and server.

A publish request carries an ordered list of ops; the same list is what a
client-side draft accumulates. Each op is an immutable value object tagged
by its ``op`` field.
"""

from typing import Annotated, Literal, Union

from pydantic import Field

from weddingday.schemas.base import FrozenCamelModel, UtcDateTime
from weddingday.schemas.timeline import OwnerRef, TimelineEvent, TimelineLane


class CreateEventOp(FrozenCamelModel):
    op: Literal["create_event"] = "create_event"
    event: TimelineEvent


class UpdateEventTimeOp(FrozenCamelModel):
    op: Literal["update_event_time"] = "update_event_time"
    event_id: str
    start_utc: UtcDateTime
    end_utc: UtcDateTime


class UpdateEventLaneOp(FrozenCamelModel):
    op: Literal["update_event_lane"] = "update_event_lane"
    event_id: str
    lane_id: str


class UpdateEventTitleOp(FrozenCamelModel):
    op: Literal["update_event_title"] = "update_event_title"
    event_id: str
    title: str


class UpdateEventOwnerOp(FrozenCamelModel):
    op: Literal["update_event_owner"] = "update_event_owner"
    event_id: str
    owner: OwnerRef


class DeleteEventOp(FrozenCamelModel):
    op: Literal["delete_event"] = "delete_event"
    event_id: str


class CreateLaneOp(FrozenCamelModel):
    op: Literal["create_lane"] = "create_lane"
    lane: TimelineLane


class UpdateLaneOp(FrozenCamelModel):
    """Partial lane update; fields left as None are unchanged."""

    op: Literal["update_lane"] = "update_lane"
    lane_id: str
    name: str | None = None
    owner: OwnerRef | None = None
    sort_order: int | None = None


class DeleteLaneOp(FrozenCamelModel):
    op: Literal["delete_lane"] = "delete_lane"
    lane_id: str


PatchOp = Annotated[
    Union[
        CreateEventOp,
        UpdateEventTimeOp,
        UpdateEventLaneOp,
        UpdateEventTitleOp,
        UpdateEventOwnerOp,
        DeleteEventOp,
        CreateLaneOp,
        UpdateLaneOp,
        DeleteLaneOp,
    ],
    Field(discriminator="op"),
]

def dump_patch_ops(ops: list[PatchOp] | tuple[PatchOp, ...]) -> list[dict]:
    """Serialize ops to their JSON wire form (camelCase keys, ISO instants)."""
    return [op.model_dump(mode="json", by_alias=True, exclude_none=True) for op in ops]


class PublishRequest(FrozenCamelModel):
    """PUT body: the version the draft was forked from plus its pending ops."""

    base_version: int = Field(..., ge=0)
    patch_ops: list[PatchOp] = Field(default_factory=list)
