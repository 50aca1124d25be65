from __future__ import annotations

import re
from prometheus_client import Counter, Histogram


def normalize_path(path: str) -> str:
    """Reduce high-cardinality paths for metrics labels."""
    p = path or "/"

    # long hex
    p = re.sub(r"/[0-9a-fA-F]{16,}", "/:hex", p)

    # index keys are arbitrary crate/module names
    p = re.sub(r"^((?:/api/v1)?/index)/[^/]+/keys/[^/]+$", r"\1/:channel/keys/:key", p)
    p = re.sub(r"^((?:/api/v1)?/index)/(?!channels$)[^/]+(/fragments)?$", r"\1/:channel\2", p)

    return p


HTTP_REQUESTS_TOTAL = Counter(
    "docindex_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "docindex_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)
