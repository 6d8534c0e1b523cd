from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict

Json = Dict[str, Any]


def _render(event: str, fields: Json) -> str:
    record: Json = dict(fields)
    record["event"] = str(event)
    record["ts_ms"] = int(time.time() * 1000)
    try:
        return json.dumps(record, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError):
        # A field that is not JSON-encodable still gets logged, as key=repr pairs.
        return " ".join([f"event={event}"] + [f"{k}={fields[k]!r}" for k in sorted(fields)])


def log_event(logger: logging.Logger, event: str, **fields: Any) -> None:
    """Log one ledger event (call_applied, call_rejected, treasury_withdrawn, ...) as a JSON line.

    Used by the executor and boot code; the HTTP layer uses it for http_request.
    """
    if logger.isEnabledFor(logging.INFO):
        logger.info(_render(event, fields))
