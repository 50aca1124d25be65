from .loader import (
    IMPLEMENTORS_CHANNEL,
    SIDEBAR_CHANNEL,
    discover_fragments,
    load_fragment_module,
    load_json_fragment,
    load_producer,
    parse_script_fragment,
)

__all__ = [
    "IMPLEMENTORS_CHANNEL",
    "SIDEBAR_CHANNEL",
    "discover_fragments",
    "load_fragment_module",
    "load_json_fragment",
    "load_producer",
    "parse_script_fragment",
]
