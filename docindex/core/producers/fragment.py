from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

from docindex.core.observability.metrics import record_delivery
from docindex.core.registry.environment import Environment
from docindex.core.registry.errors import EnvironmentUnavailable
from docindex.core.registry.models import FragmentMapping, freeze_mapping

log = logging.getLogger("docindex.producer")

DEFAULT_CHANNEL = "implementors"


@dataclass
class FragmentProducer:
    """
    One documentation unit: a mapping built once, delivered once.

    deliver() merges into the channel's registry when it is installed, or
    appends to the channel's pending queue otherwise. It never does both and
    never retries. A second call is refused without touching shared state.
    """
    name: str
    mapping: FragmentMapping
    channel: str = DEFAULT_CHANNEL
    outcome: Optional[str] = field(default=None, init=False)

    @classmethod
    def from_raw(
        cls,
        name: str,
        raw: Mapping[str, Iterable[Any]],
        *,
        channel: str = DEFAULT_CHANNEL,
    ) -> "FragmentProducer":
        return cls(name=name, mapping=freeze_mapping(raw), channel=channel)

    @property
    def delivered(self) -> bool:
        return self.outcome is not None

    def deliver(self, environment: Optional[Environment]) -> str:
        """
        Returns "merged", "queued" or "refused" (already delivered).

        Raises EnvironmentUnavailable when no handle can be reached; the
        producer then stays undelivered.
        """
        if self.delivered:
            log.warning("producer.refused name=%s channel=%s previous=%s", self.name, self.channel, self.outcome)
            record_delivery(self.channel, "refused")
            return "refused"

        try:
            if environment is None:
                raise EnvironmentUnavailable(self.channel, "no environment")
            handle = environment.handle(self.channel)
        except EnvironmentUnavailable:
            record_delivery(self.channel, "unavailable")
            raise

        outcome = handle.offer(self.mapping)
        self.outcome = outcome
        record_delivery(self.channel, outcome)
        log.debug("producer.delivered name=%s channel=%s outcome=%s keys=%s", self.name, self.channel, outcome, len(self.mapping))
        return outcome
