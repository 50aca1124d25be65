from __future__ import annotations

import logging
from threading import Lock
from typing import Dict, Iterable, List, Optional

from .errors import EnvironmentUnavailable, RegistryStateError
from .index_registry import IndexRegistry
from .models import FragmentMapping

log = logging.getLogger("docindex.environment")


class RegistryHandle:
    """
    Well-known slot for one channel: the registry once it exists, otherwise
    the queue of mappings that arrived before it.

    Exactly one of (registry, pending) is live at a time.
    """

    def __init__(self, channel: str):
        self.channel = channel
        self._lock = Lock()
        self._registry: Optional[IndexRegistry] = None
        self._pending: Optional[List[FragmentMapping]] = None

    @property
    def registry(self) -> Optional[IndexRegistry]:
        return self._registry

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending or [])

    def offer(self, mapping: FragmentMapping) -> str:
        """
        Merge into the registry if it is installed, else queue.

        Returns "merged" or "queued".
        """
        with self._lock:
            reg = self._registry
            if reg is not None:
                reg.merge(mapping)
                return "merged"

            if self._pending is None:
                self._pending = []
            self._pending.append(mapping)
            return "queued"

    def install(
        self,
        registry: Optional[IndexRegistry] = None,
        *,
        mappings: Iterable[FragmentMapping] = (),
    ) -> IndexRegistry:
        """
        Publish a registry on this handle.

        The registry is initialized from the queued mappings first (arrival
        order), then from `mappings` (collected at startup). A handle accepts
        one registry for its whole life; the registry must be uninitialized.
        """
        with self._lock:
            if self._registry is not None:
                raise RegistryStateError(f"registry already installed for channel={self.channel}")

            reg = registry or IndexRegistry(channel=self.channel)
            pending = self._pending or []
            reg.initialize([*pending, *mappings])

            self._pending = None
            self._registry = reg

        log.debug("handle.install channel=%s drained=%s", self.channel, len(pending))
        return reg


class Environment:
    """
    Shared namespace the producers deliver into, one handle per channel.

    Constructed by the composition root and passed to producers explicitly.
    """

    def __init__(self, name: str = "docindex"):
        self.name = name
        self._lock = Lock()
        self._handles: Dict[str, RegistryHandle] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def handle(self, channel: str) -> RegistryHandle:
        if not channel:
            raise EnvironmentUnavailable(str(channel), "empty channel name")

        with self._lock:
            if self._closed:
                raise EnvironmentUnavailable(channel, f"environment '{self.name}' is closed")
            h = self._handles.get(channel)
            if h is None:
                h = RegistryHandle(channel)
                self._handles[channel] = h
            return h

    def peek(self, channel: str) -> Optional[RegistryHandle]:
        """Existing handle or None; never creates one and works after close()."""
        with self._lock:
            return self._handles.get(channel)

    def registry(self, channel: str) -> Optional[IndexRegistry]:
        h = self.peek(channel)
        return h.registry if h is not None else None

    def channels(self) -> List[str]:
        with self._lock:
            return list(self._handles.keys())

    def close(self) -> None:
        with self._lock:
            self._closed = True
        log.info("environment.closed name=%s channels=%s", self.name, len(self._handles))


_DEFAULT_ENV = Environment()


def get_default_environment() -> Environment:
    return _DEFAULT_ENV


def set_default_environment(env: Environment) -> Environment:
    global _DEFAULT_ENV
    _DEFAULT_ENV = env
    return env


def reset_default_environment() -> Environment:
    """Test helper: replace the default environment with an empty one."""
    return set_default_environment(Environment())
