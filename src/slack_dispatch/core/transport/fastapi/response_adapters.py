"""
FastAPI response adapters.
"""

from __future__ import annotations

from fastapi.responses import Response

JSON_MEDIA_TYPE = "application/json"


def ack_to_response(ack_body: str | None) -> Response:
    """Build the HTTP response for an ack: empty 200, or the JSON ack body."""
    if not ack_body:
        return Response(status_code=200)
    return Response(content=ack_body, status_code=200, media_type=JSON_MEDIA_TYPE)
