from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from docindex.core.config import IndexConfig
from docindex.core.fragments.loader import discover_fragments
from docindex.core.producers.fragment import FragmentProducer
from docindex.core.registry.environment import Environment
from docindex.core.registry.index_registry import IndexRegistry
from docindex.core.registry.models import FragmentMapping

log = logging.getLogger("docindex.bootstrap")


@dataclass
class LoadReport:
    fragments_dir: str
    producers: Dict[str, List[str]] = field(default_factory=dict)
    warnings: List[Dict[str, Any]] = field(default_factory=list)
    fingerprints: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fragments_dir": self.fragments_dir,
            "producers": {k: list(v) for k, v in self.producers.items()},
            "warnings": list(self.warnings),
            "fingerprints": dict(self.fingerprints),
        }


def collect(producers: Iterable[FragmentProducer]) -> List[FragmentMapping]:
    """Phase one: every producer's mapping, in producer order."""
    return [p.mapping for p in producers]


def build_registry(mappings: Iterable[FragmentMapping], *, channel: str = "default") -> IndexRegistry:
    """Phase two: a READY registry holding all mappings, merged in one pass."""
    reg = IndexRegistry(channel=channel)
    reg.initialize(list(mappings))
    return reg


def compose(
    config: Optional[IndexConfig] = None,
    *,
    environment: Optional[Environment] = None,
    fragments_dir: Optional[Path] = None,
) -> Tuple[Environment, LoadReport]:
    """
    Composition root.

    Discovers fragments and installs one registry per channel, initialized
    from the handle's pending queue followed by the collected mappings.
    Channels listed in the config get an empty registry even when no
    fragment targets them.
    """
    cfg = config or IndexConfig.from_env()
    env = environment or Environment()
    root = Path(fragments_dir or cfg.fragments_dir)

    producers, warnings = discover_fragments(root)

    by_channel: Dict[str, List[FragmentProducer]] = {c: [] for c in cfg.channels}
    for p in producers:
        by_channel.setdefault(p.channel, []).append(p)

    report = LoadReport(fragments_dir=str(root), warnings=warnings)
    for channel, group in by_channel.items():
        # anything queued on the handle before startup is drained first
        reg = env.handle(channel).install(mappings=collect(group))
        for p in group:
            # bootstrapped producers count as delivered
            p.outcome = "merged"
        report.producers[channel] = [p.name for p in group]
        report.fingerprints[channel] = reg.fingerprint

    log.info(
        "bootstrap.composed root=%s channels=%s producers=%s warnings=%s",
        root,
        len(by_channel),
        len(producers),
        len(warnings),
    )
    return env, report
