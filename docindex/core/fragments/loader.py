"""
Fragment sources.

Turns on-disk fragments into FragmentProducers. Recognised files:

  <root>/<channel>/*.py    module exposing MAPPING (or FRAGMENT), optional CHANNEL
  <root>/<channel>/*.json  {"key": [descriptor, ...], ...}
  <root>/<channel>/*.js    generated index scripts:
                             implementors["crate"] = [...];
                             initSidebarItems({"kind": [[name, doc], ...]});

The directory name is the channel unless the file declares its own.
A bad file never aborts discovery; it is skipped with a warning record.
"""
from __future__ import annotations

import hashlib
import importlib.util
import json
import logging
import re
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from docindex.core.producers.fragment import DEFAULT_CHANNEL, FragmentProducer
from docindex.core.registry.errors import FragmentLoadError

log = logging.getLogger("docindex.fragments")

SIDEBAR_CHANNEL = "sidebar"
IMPLEMENTORS_CHANNEL = "implementors"

_IMPLEMENTORS_LINE = re.compile(r'^\s*implementors\[("(?:[^"\\]|\\.)*")\]\s*=\s*(\[.*\]);?\s*$', re.MULTILINE)
_SIDEBAR_CALL = re.compile(r"initSidebarItems\((\{.*\})\);?", re.DOTALL)

_SUFFIXES = (".py", ".json", ".js")


def parse_script_fragment(text: str, *, source: str = "<script>") -> Tuple[str, Dict[str, List[Any]]]:
    """
    Parse a generated index script into (channel, raw mapping).

    Key order follows the script.
    """
    m = _SIDEBAR_CALL.search(text)
    if m is not None:
        try:
            data = json.loads(m.group(1))
        except json.JSONDecodeError as e:
            raise FragmentLoadError(source, f"invalid sidebar payload: {e}") from e
        if not isinstance(data, dict):
            raise FragmentLoadError(source, "sidebar payload must be an object")
        return SIDEBAR_CHANNEL, _as_mapping(source, data)

    raw: Dict[str, List[Any]] = {}
    for key_lit, value_lit in _IMPLEMENTORS_LINE.findall(text):
        try:
            key = json.loads(key_lit)
            value = json.loads(value_lit)
        except json.JSONDecodeError as e:
            raise FragmentLoadError(source, f"invalid implementors entry: {e}") from e
        # keys are unique within one fragment; a repeat would drop the earlier entry
        if key in raw:
            raise FragmentLoadError(source, f"duplicate implementors key {key!r}")
        raw[key] = _as_list(source, key, value)

    if not raw:
        raise FragmentLoadError(source, "no recognised index payload")
    return IMPLEMENTORS_CHANNEL, raw


def load_json_fragment(path: Path) -> Dict[str, List[Any]]:
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise FragmentLoadError(str(path), f"cannot read JSON fragment: {e}") from e

    if not isinstance(data, dict):
        raise FragmentLoadError(str(path), f"JSON fragment must be an object, got {type(data).__name__}")
    return _as_mapping(str(path), data)


def load_fragment_module(path: Path) -> Tuple[Optional[str], Dict[str, List[Any]]]:
    """
    Import a fragment module by path and read its MAPPING (or FRAGMENT) symbol.

    Returns (declared channel or None, raw mapping).
    """
    module_path = Path(path).resolve()

    # module name must be deterministic across interpreter restarts
    path_key = str(module_path).replace("\\", "/").lower().encode("utf-8")
    path_hash = hashlib.sha1(path_key).hexdigest()[:16]
    module_name = f"docindex_fragment_{module_path.stem}_{path_hash}"

    spec = importlib.util.spec_from_file_location(module_name, str(module_path))
    if spec is None or spec.loader is None:
        raise FragmentLoadError(str(module_path), "cannot create module spec")

    mod = importlib.util.module_from_spec(spec)

    # register before exec_module; dataclasses defined in fragments look it up
    sys.modules[module_name] = mod
    try:
        spec.loader.exec_module(mod)  # type: ignore[attr-defined]
    except Exception as e:
        sys.modules.pop(module_name, None)
        raise FragmentLoadError(str(module_path), f"import failed: {e}") from e

    data = getattr(mod, "MAPPING", None)
    if data is None:
        data = getattr(mod, "FRAGMENT", None)
    if data is None:
        raise FragmentLoadError(str(module_path), "must define MAPPING (or FRAGMENT)")
    if not isinstance(data, dict):
        raise FragmentLoadError(str(module_path), f"MAPPING must be a dict, got {type(data).__name__}")

    channel = getattr(mod, "CHANNEL", None)
    return (str(channel) if channel else None), _as_mapping(str(module_path), data)


def load_producer(path: Path, *, channel: Optional[str] = None) -> FragmentProducer:
    """Build one producer from a fragment file. Raises FragmentLoadError."""
    path = Path(path)
    declared: Optional[str] = None

    if path.suffix == ".py":
        declared, raw = load_fragment_module(path)
    elif path.suffix == ".json":
        raw = load_json_fragment(path)
    elif path.suffix == ".js":
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise FragmentLoadError(str(path), f"cannot read script fragment: {e}") from e
        declared, raw = parse_script_fragment(text, source=str(path))
    else:
        raise FragmentLoadError(str(path), f"unsupported fragment type '{path.suffix}'")

    return FragmentProducer.from_raw(
        name=path.name,
        raw=raw,
        channel=declared or channel or DEFAULT_CHANNEL,
    )


def discover_fragments(root: Path) -> Tuple[List[FragmentProducer], List[Dict[str, Any]]]:
    """
    Returns (producers, warnings). Never raises for a single bad fragment.

    Order is deterministic: top-level files first, then channel directories,
    each sorted by name.
    """
    root = Path(root)
    if not root.exists():
        return [], [{
            "code": "fragments.root_missing",
            "severity": "warn",
            "message": f"No fragment directory found at {str(root)}",
            "data": {"path": str(root)},
        }]

    producers: List[FragmentProducer] = []
    warnings: List[Dict[str, Any]] = []

    candidates: List[Tuple[Path, Optional[str]]] = []
    candidates.extend((p, None) for p in sorted(root.iterdir()) if p.is_file())
    for sub in sorted(p for p in root.iterdir() if p.is_dir()):
        if sub.name.startswith(("_", ".")):
            continue
        candidates.extend((p, sub.name) for p in sorted(sub.iterdir()) if p.is_file())

    for path, channel in candidates:
        if path.suffix not in _SUFFIXES or path.name.startswith("_"):
            continue
        try:
            producers.append(load_producer(path, channel=channel))
        except FragmentLoadError as e:
            log.warning("fragments.skipped path=%s reason=%s", e.path, e.message)
            warnings.append({
                "code": "fragments.load_failed",
                "severity": "warn",
                "message": f"Failed to load fragment {path.name}: {e.message}",
                "data": {"path": str(path)},
            })

    log.info("fragments.discovered root=%s producers=%s warnings=%s", root, len(producers), len(warnings))
    return producers, warnings


def _as_list(source: str, key: Any, value: Any) -> List[Any]:
    if not isinstance(value, (list, tuple)):
        raise FragmentLoadError(source, f"descriptors for key {key!r} must be a list, got {type(value).__name__}")
    return list(value)


def _as_mapping(source: str, data: Dict[Any, Any]) -> Dict[str, List[Any]]:
    out: Dict[str, List[Any]] = {}
    for key, value in data.items():
        if not isinstance(key, str):
            raise FragmentLoadError(source, f"keys must be strings, got {type(key).__name__} ({key!r})")
        out[key] = _as_list(source, key, value)
    return out
