"""In-memory request and search counters for the /metrics endpoint."""
import time
from collections.abc import MutableMapping
from threading import Lock

_start_time = time.monotonic()
_counts: MutableMapping[str, int] = {}
_lock = Lock()


def _incr(key: str, by: int = 1) -> None:
    with _lock:
        _counts[key] = _counts.get(key, 0) + by


def record_request(status_code: int) -> None:
    if 200 <= status_code < 300:
        bucket = "2xx"
    elif 400 <= status_code < 500:
        bucket = "4xx"
    elif status_code >= 500:
        bucket = "5xx"
    else:
        bucket = "other"
    _incr(f"requests_{bucket}")


def record_search(kind: str, scanned: int, returned: int) -> None:
    """kind: "nearby" | "search" | "rank"."""
    with _lock:
        _counts[f"{kind}_queries"] = _counts.get(f"{kind}_queries", 0) + 1
        _counts[f"{kind}_candidates_scanned"] = _counts.get(f"{kind}_candidates_scanned", 0) + scanned
        _counts[f"{kind}_results_returned"] = _counts.get(f"{kind}_results_returned", 0) + returned


def record_timeout(kind: str) -> None:
    _incr(f"{kind}_timeouts")


def get_metrics() -> dict:
    with _lock:
        counts = dict(_counts)
    uptime_seconds = time.monotonic() - _start_time
    out = {
        "requests_total": sum(v for k, v in counts.items() if k.startswith("requests_")),
        "requests_2xx": counts.get("requests_2xx", 0),
        "requests_4xx": counts.get("requests_4xx", 0),
        "requests_5xx": counts.get("requests_5xx", 0),
        "uptime_seconds": round(uptime_seconds, 1),
    }
    for kind in ("nearby", "search", "rank"):
        for suffix in ("queries", "candidates_scanned", "results_returned", "timeouts"):
            out[f"{kind}_{suffix}"] = counts.get(f"{kind}_{suffix}", 0)
    return out


def reset_metrics() -> None:
    """Clear counters (tests)."""
    with _lock:
        _counts.clear()
