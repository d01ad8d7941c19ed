"""Minimal method + path-template router."""

import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from src.web.request import Request

Handler = Callable[[Request], Awaitable[Any]]

_PARAM = re.compile(r"\{(\w+)\}")


@dataclass
class Route:
    method: str
    pattern: str
    regex: re.Pattern
    handler: Handler
    status: int = 200


def compile_pattern(pattern: str) -> re.Pattern:
    """``/api/listings/{listing_id}`` -> regex with a named group per segment."""
    regex = _PARAM.sub(lambda m: f"(?P<{m.group(1)}>[^/]+)", pattern)
    return re.compile(f"^{regex}$")


class Router:
    """Routes are matched in registration order; register literal paths before templates."""

    def __init__(self):
        self.routes: list[Route] = []

    def add(self, method: str, pattern: str, handler: Handler, status: int = 200) -> None:
        self.routes.append(Route(method.upper(), pattern, compile_pattern(pattern), handler, status))

    def route(self, method: str, pattern: str, status: int = 200):
        def decorator(handler: Handler) -> Handler:
            self.add(method, pattern, handler, status)
            return handler
        return decorator

    def match(self, method: str, path: str) -> tuple[Optional[Route], dict[str, str]]:
        for route in self.routes:
            if route.method != method.upper():
                continue
            found = route.regex.match(path)
            if found:
                return route, found.groupdict()
        return None, {}

    def allowed_methods(self, path: str) -> list[str]:
        return sorted({route.method for route in self.routes if route.regex.match(path)})
