"""Transport-neutral request/response objects."""

import json
from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import parse_qsl, unquote, urlsplit

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header

from src.models.principal import Principal
from src.services.listings import ImageUpload
from src.utils.errors import InvalidInputError


@dataclass
class Request:
    method: str
    path: str
    headers: dict[str, str] = field(default_factory=dict)
    query: dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    path_params: dict[str, str] = field(default_factory=dict)
    principal: Optional[Principal] = None

    @classmethod
    def from_raw(cls, method: str, target: str, headers: dict[str, str], body: bytes = b"") -> "Request":
        """Build from a request line target such as ``/api/listings?city=Nairobi``."""
        parts = urlsplit(target)
        path = unquote(parts.path) or "/"
        if len(path) > 1:
            path = path.rstrip("/")
        # Last value wins for repeated keys
        query = dict(parse_qsl(parts.query, keep_blank_values=True))
        return cls(method=method.upper(), path=path, headers=dict(headers), query=query, body=body)

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return default

    def json(self) -> dict[str, Any]:
        """Parse the body as a JSON object. An empty body is an empty object."""
        if not self.body:
            return {}
        try:
            data = json.loads(self.body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            raise InvalidInputError("Request body is not valid JSON")
        if not isinstance(data, dict):
            raise InvalidInputError("Request body must be a JSON object")
        return data

    def files(self, field_name: str) -> list[ImageUpload]:
        """File parts named ``field_name`` from a multipart/form-data body, in order."""
        content_type, params = parse_options_header(self.header("Content-Type", ""))
        if content_type != b"multipart/form-data":
            raise InvalidInputError("Expected multipart/form-data")
        boundary = params.get(b"boundary")
        if not boundary:
            raise InvalidInputError("Malformed multipart body")

        collector = _PartCollector()
        parser = MultipartParser(boundary, callbacks=collector.callbacks())
        try:
            parser.write(self.body)
            parser.finalize()
        except MultipartParseError:
            raise InvalidInputError("Malformed multipart body")

        uploads = []
        for part in collector.parts:
            _, disposition = parse_options_header(part.headers.get(b"content-disposition"))
            filename = disposition.get(b"filename")
            if disposition.get(b"name") != field_name.encode("utf-8") or filename is None:
                continue
            part_type, _ = parse_options_header(part.headers.get(b"content-type"))
            uploads.append(ImageUpload(
                filename=filename.decode("utf-8", errors="replace"),
                content_type=part_type.decode("latin-1") or "application/octet-stream",
                content=bytes(part.data),
            ))
        return uploads


@dataclass
class _Part:
    headers: dict[bytes, bytes] = field(default_factory=dict)
    data: bytearray = field(default_factory=bytearray)


class _PartCollector:
    """Buffers parts emitted by ``MultipartParser`` callbacks."""

    def __init__(self):
        self.parts: list[_Part] = []
        self._field = bytearray()
        self._value = bytearray()

    def callbacks(self) -> dict:
        return {
            "on_part_begin": self._part_begin,
            "on_header_field": self._header_field,
            "on_header_value": self._header_value,
            "on_header_end": self._header_end,
            "on_part_data": self._part_data,
        }

    def _part_begin(self) -> None:
        self.parts.append(_Part())

    def _header_field(self, data: bytes, start: int, end: int) -> None:
        self._field += data[start:end]

    def _header_value(self, data: bytes, start: int, end: int) -> None:
        self._value += data[start:end]

    def _header_end(self) -> None:
        self.parts[-1].headers[bytes(self._field).lower()] = bytes(self._value)
        self._field.clear()
        self._value.clear()

    def _part_data(self, data: bytes, start: int, end: int) -> None:
        self.parts[-1].data += data[start:end]


@dataclass
class Response:
    status: int
    body: Any = None
    headers: dict[str, str] = field(default_factory=dict)

    def encode(self) -> bytes:
        if self.body is None or self.status == 204:
            return b""
        return json.dumps(self.body).encode("utf-8")
