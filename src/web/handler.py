"""BaseHTTPRequestHandler adapter shared by the Vercel functions and the local server."""

import asyncio
from http.server import BaseHTTPRequestHandler

from src.app import get_app
from src.utils.errors import InvalidInputError
from src.utils.logging import get_structured_logger
from src.web.request import Request, Response

logger = get_structured_logger(__name__)


class JSONRequestHandler(BaseHTTPRequestHandler):
    """Reads the request, runs it through the application and writes JSON back."""

    def _read_body(self, max_bytes: int) -> bytes:
        content_length = int(self.headers.get("Content-Length", 0) or 0)
        if content_length > max_bytes:
            raise InvalidInputError("Request body too large")
        return self.rfile.read(content_length) if content_length > 0 else b""

    def _send(self, response: Response) -> None:
        payload = response.encode()
        self.send_response(response.status)
        for name, value in response.headers.items():
            self.send_header(name, value)
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        if payload and self.command != "HEAD":
            self.wfile.write(payload)

    def _dispatch(self) -> None:
        try:
            app = get_app()
        except Exception as e:
            logger.exception("Application failed to initialize", error=str(e))
            self._send(Response(500, {"message": "Something went wrong!"}, {"Content-Type": "application/json"}))
            return

        try:
            body = self._read_body(app.config.max_body_bytes)
        except (InvalidInputError, ValueError) as e:
            message = e.message if isinstance(e, InvalidInputError) else "Invalid Content-Length"
            self._send(Response(400, {"message": message}, {"Content-Type": "application/json"}))
            return

        request = Request.from_raw(self.command, self.path, dict(self.headers.items()), body)
        self._send(asyncio.run(app.handle(request)))

    def do_GET(self):
        self._dispatch()

    def do_POST(self):
        self._dispatch()

    def do_PUT(self):
        self._dispatch()

    def do_DELETE(self):
        self._dispatch()

    def do_OPTIONS(self):
        self._dispatch()

    def log_message(self, format, *args):
        # Access lines come from Application.handle
        pass
