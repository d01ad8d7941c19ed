"""Test helper functions."""

import json
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from src.web.request import Request

BOUNDARY = "----kejahunt-test-boundary"


def auth_headers(app, user_id: str, expires_in_seconds: Optional[int] = None) -> Dict[str, str]:
    """Authorization header carrying a freshly minted token for ``user_id``."""
    token = app.identity.issue_token(user_id, expires_in_seconds=expires_in_seconds)
    return {"Authorization": f"Bearer {token}"}


def create_request(
    method: str = "GET",
    path: str = "/api/health",
    body: Any = None,
    headers: Optional[Dict[str, str]] = None,
    query: Optional[Dict[str, Any]] = None,
) -> Request:
    """Build a Request the way the HTTP handler would."""
    target = path
    if query:
        target = f"{path}?{urlencode(query)}"

    headers = dict(headers or {})
    raw_body = b""
    if isinstance(body, (bytes, bytearray)):
        raw_body = bytes(body)
    elif body is not None:
        raw_body = json.dumps(body).encode("utf-8")
        headers.setdefault("Content-Type", "application/json")

    return Request.from_raw(method, target, headers, raw_body)


async def call(app, method: str, path: str, **kwargs) -> tuple[int, Any]:
    """Run one request through the application; returns (status, decoded body)."""
    response = await app.handle(create_request(method, path, **kwargs))
    payload = response.encode()
    return response.status, json.loads(payload) if payload else None


def multipart_body(files: list[tuple[str, str, str, bytes]]) -> tuple[bytes, Dict[str, str]]:
    """Encode ``(field, filename, content_type, content)`` parts as multipart/form-data."""
    chunks = []
    for field_name, filename, content_type, content in files:
        chunks.append(
            (
                f"--{BOUNDARY}\r\n"
                f'Content-Disposition: form-data; name="{field_name}"; filename="{filename}"\r\n'
                f"Content-Type: {content_type}\r\n\r\n"
            ).encode("utf-8")
            + content
            + b"\r\n"
        )
    chunks.append(f"--{BOUNDARY}--\r\n".encode("utf-8"))
    return b"".join(chunks), {"Content-Type": f"multipart/form-data; boundary={BOUNDARY}"}
