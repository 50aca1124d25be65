from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple


class RegistryState(str, Enum):
    UNINITIALIZED = "UNINITIALIZED"
    INITIALIZING = "INITIALIZING"
    READY = "READY"


@dataclass(frozen=True)
class Descriptor:
    """
    One indexed relationship record.

    The payload is carried as given; the registry never inspects it.
    """
    payload: Any

    @classmethod
    def of(cls, value: Any) -> "Descriptor":
        if isinstance(value, Descriptor):
            return value
        return cls(payload=value)


# key -> ordered descriptors, as delivered by one fragment
FragmentMapping = Mapping[str, Tuple[Descriptor, ...]]

# key -> concatenated descriptors across fragments
MergedView = Dict[str, Tuple[Descriptor, ...]]


def freeze_mapping(raw: Mapping[str, Iterable[Any]]) -> FragmentMapping:
    """
    Copy a plain {key: [item, ...]} dict into an immutable fragment mapping.

    Items that are not already Descriptors are wrapped.
    """
    out: Dict[str, Tuple[Descriptor, ...]] = {}
    for key, items in raw.items():
        # keys are taken as given; coercing would let 1 and "1" collide
        if not isinstance(key, str):
            raise TypeError(f"fragment keys must be str, got {type(key).__name__} ({key!r})")
        if isinstance(items, (str, bytes)):
            raise TypeError(f"descriptors for key {key!r} must be a sequence, got {type(items).__name__}")
        out[key] = tuple(Descriptor.of(x) for x in items)
    return MappingProxyType(out)


def thaw_view(view: Mapping[str, Sequence[Descriptor]]) -> Dict[str, List[Any]]:
    """Plain JSON-friendly form: {key: [payload, ...]}."""
    return {k: [d.payload for d in v] for k, v in view.items()}
