from __future__ import annotations

import hashlib
import json
import logging
from threading import Lock
from typing import Any, Dict, Iterable, List, Optional, Tuple

from docindex.core.observability.metrics import record_merge

from .errors import RegistryStateError
from .models import Descriptor, FragmentMapping, MergedView, RegistryState
from .state_machine import accepts_merge, ensure_transition

log = logging.getLogger("docindex.registry")


class IndexRegistry:
    """
    Accumulates fragment mappings in arrival order.

    Per key, descriptor sequences are concatenated in the order fragments
    were merged. Keys keep the order of their first appearance. Nothing is
    deduplicated: merging the same mapping twice stores its descriptors twice.

    Lifecycle:
      UNINITIALIZED -> INITIALIZING (initialize() called)
      INITIALIZING -> READY (pending queue drained)
    """

    def __init__(self, channel: str = "default"):
        self.channel = channel
        self._lock = Lock()
        self._state = RegistryState.UNINITIALIZED
        self._merged: Dict[str, List[Descriptor]] = {}
        self._merge_count = 0
        self._fingerprint: Optional[str] = None

    @property
    def state(self) -> RegistryState:
        return self._state

    @property
    def ready(self) -> bool:
        return self._state == RegistryState.READY

    @property
    def fingerprint(self) -> str:
        with self._lock:
            if self._fingerprint is None:
                self._fingerprint = self._compute_fingerprint()
            return self._fingerprint

    def initialize(self, pending: Optional[Iterable[FragmentMapping]] = None) -> int:
        """
        Drain queued mappings (arrival order) and move to READY.

        Returns the number of mappings drained. The caller discards its queue.
        """
        with self._lock:
            ensure_transition(self._state, RegistryState.INITIALIZING)
            self._state = RegistryState.INITIALIZING

            drained = 0
            for mapping in (pending or []):
                self._merge_locked(mapping)
                drained += 1

            ensure_transition(self._state, RegistryState.READY)
            self._state = RegistryState.READY

        log.info("registry.ready channel=%s drained=%s keys=%s", self.channel, drained, len(self._merged))
        return drained

    def merge(self, mapping: FragmentMapping) -> None:
        with self._lock:
            if not accepts_merge(self._state):
                raise RegistryStateError(f"merge not allowed in state {self._state.value} (channel={self.channel})")
            self._merge_locked(mapping)

    def snapshot(self) -> MergedView:
        with self._lock:
            return {k: tuple(v) for k, v in self._merged.items()}

    def get(self, key: str) -> Optional[Tuple[Descriptor, ...]]:
        with self._lock:
            v = self._merged.get(key)
            return tuple(v) if v is not None else None

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._merged.keys())

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "channel": self.channel,
                "state": self._state.value,
                "keys": len(self._merged),
                "descriptors": sum(len(v) for v in self._merged.values()),
                "merges": self._merge_count,
            }

    # --- internals ---

    def _merge_locked(self, mapping: FragmentMapping) -> None:
        added = 0
        for key, descriptors in mapping.items():
            bucket = self._merged.setdefault(key, [])
            bucket.extend(descriptors)
            added += len(descriptors)

        self._merge_count += 1
        self._fingerprint = None
        record_merge(self.channel, added)
        log.debug("registry.merge channel=%s keys=%s descriptors=%s", self.channel, len(mapping), added)

    def _compute_fingerprint(self) -> str:
        # key order and per-key order are both part of the identity
        h = hashlib.sha256()
        for key, descriptors in self._merged.items():
            h.update(key.encode("utf-8"))
            h.update(b"\0")
            for d in descriptors:
                h.update(json.dumps(d.payload, sort_keys=True, default=str).encode("utf-8"))
                h.update(b"\0")
            h.update(b"\1")
        return h.hexdigest()[:16]
