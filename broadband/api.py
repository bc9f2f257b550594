"""
Request boundary for the HTTP layer.

Handlers return ``(status, payload)`` pairs that any web framework can
serialise as JSON.  Per-request errors become 4xx payloads with a
machine-readable ``kind``; anything else is logged and reported as a
generic 500 without internal detail.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Tuple

from broadband.errors import BroadbandError, InvalidInput, NotFound
from broadband.query import HexQueryService

logger = logging.getLogger(__name__)

Response = Tuple[int, Any]

_MESSAGES: Dict[type, str] = {
    InvalidInput: "Invalid hex ID format",
    NotFound: "Hex not found",
}


def error_payload(exc: Exception) -> Response:
    """Translate *exc* into a response; never leaks storage details."""
    if isinstance(exc, (InvalidInput, NotFound)):
        return exc.status, {"error": _MESSAGES[type(exc)], "kind": exc.kind}
    if isinstance(exc, BroadbandError):
        logger.error("Request failed (%s): %s", exc.kind, exc)
    else:
        logger.error("Unexpected error while handling request", exc_info=exc)
    return 500, {"error": "Internal error", "kind": "internal"}


def _handle(service: HexQueryService, fn: Callable[[], Any]) -> Response:
    try:
        return 200, fn()
    except Exception as exc:  # converted at the request boundary
        return error_payload(exc)
    finally:
        # close the request thread's cursor
        service.store.release()


def list_hexes_response(service: HexQueryService) -> Response:
    """``GET /api/maryland/hexes``"""
    return _handle(service, service.list_hexes)


def hex_detail_response(service: HexQueryService, hex_id: str) -> Response:
    """``GET /api/maryland/hex/<hex_id>``"""
    return _handle(service, lambda: service.get_hex_detail(hex_id))
