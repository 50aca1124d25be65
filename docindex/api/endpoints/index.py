from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from docindex.api.schemas.index import (
    ChannelListResponse,
    ChannelStatsModel,
    FragmentDeliveryRequest,
    FragmentDeliveryResponse,
    KeyResponse,
    SnapshotResponse,
)
from docindex.core.producers.fragment import FragmentProducer
from docindex.core.registry.environment import Environment, RegistryHandle
from docindex.core.registry.index_registry import IndexRegistry
from docindex.core.registry.models import RegistryState, thaw_view

router = APIRouter()


def get_environment(request: Request) -> Environment:
    return request.app.state.environment


def _registry_or_404(env: Environment, channel: str) -> IndexRegistry:
    reg = env.registry(channel)
    if reg is None:
        raise HTTPException(status_code=404, detail=f"no registry for channel '{channel}'")
    return reg


def _channel_stats(env: Environment, channel: str) -> ChannelStatsModel:
    # read-only: peek never creates a handle and still works once the environment is closed
    handle: Optional[RegistryHandle] = env.peek(channel)
    pending = handle.pending_count if handle is not None else 0
    reg = handle.registry if handle is not None else None
    if reg is None:
        return ChannelStatsModel(
            channel=channel,
            state=RegistryState.UNINITIALIZED.value,
            pending=pending,
        )
    return ChannelStatsModel(**reg.stats(), pending=pending, fingerprint=reg.fingerprint)


@router.get("/index/channels", response_model=ChannelListResponse)
def list_channels(env: Environment = Depends(get_environment)):
    channels = [_channel_stats(env, c) for c in env.channels()]
    return ChannelListResponse(count=len(channels), channels=channels)


@router.get("/index/{channel}", response_model=SnapshotResponse)
def channel_snapshot(channel: str, env: Environment = Depends(get_environment)):
    reg = _registry_or_404(env, channel)
    return SnapshotResponse(
        channel=channel,
        state=reg.state.value,
        fingerprint=reg.fingerprint,
        index=thaw_view(reg.snapshot()),
    )


@router.get("/index/{channel}/keys/{key}", response_model=KeyResponse)
def channel_key(channel: str, key: str, env: Environment = Depends(get_environment)):
    reg = _registry_or_404(env, channel)
    descriptors = reg.get(key)
    if descriptors is None:
        raise HTTPException(status_code=404, detail=f"key '{key}' not indexed in channel '{channel}'")
    return KeyResponse(channel=channel, key=key, descriptors=[d.payload for d in descriptors])


@router.post("/index/{channel}/fragments", response_model=FragmentDeliveryResponse)
def deliver_fragment(
    channel: str,
    body: FragmentDeliveryRequest,
    env: Environment = Depends(get_environment),
):
    # compose installs a registry for every known channel; an unknown one would queue forever
    _registry_or_404(env, channel)

    name = body.name or f"http-{uuid.uuid4().hex[:12]}"
    producer = FragmentProducer.from_raw(name, body.mapping, channel=channel)

    # EnvironmentUnavailable propagates to the app-level handler (503)
    outcome = producer.deliver(env)

    return FragmentDeliveryResponse(
        channel=channel,
        name=name,
        outcome=outcome,
        keys=len(producer.mapping),
        descriptors=sum(len(v) for v in producer.mapping.values()),
    )
