from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class FragmentDeliveryRequest(BaseModel):
    name: Optional[str] = Field(default=None, description="Source identifier for logs and reports.")
    mapping: Dict[str, List[Any]] = Field(default_factory=dict, description="key -> ordered descriptors")


class FragmentDeliveryResponse(BaseModel):
    channel: str
    name: str
    outcome: str  # "merged" | "queued"
    keys: int
    descriptors: int


class ChannelStatsModel(BaseModel):
    channel: str
    state: str
    keys: int = 0
    descriptors: int = 0
    merges: int = 0
    pending: int = 0
    fingerprint: Optional[str] = None


class ChannelListResponse(BaseModel):
    count: int
    channels: List[ChannelStatsModel]


class SnapshotResponse(BaseModel):
    channel: str
    state: str
    fingerprint: str
    index: Dict[str, List[Any]]


class KeyResponse(BaseModel):
    channel: str
    key: str
    descriptors: List[Any]
