"""Path and query normalization for requests routed under the /api prefix."""

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping
from urllib.parse import parse_qsl, quote, urlsplit

ROUTE_PREFIX = "/api"

QueryValue = str | list[str]


def strip_prefix(path: str) -> str:
    """Remove the routing prefix once from the start of ``path``."""
    if path.startswith(ROUTE_PREFIX):
        path = path[len(ROUTE_PREFIX):]
    if not path:
        return "/"
    if not path.startswith("/"):
        return f"/{path}"
    return path


def parse_query(query_string: str | bytes) -> dict[str, QueryValue]:
    """Decode a query string into a flat mapping; repeated keys collect a list."""
    if isinstance(query_string, bytes):
        query_string = query_string.decode("utf-8", errors="replace")
    query: dict[str, QueryValue] = {}
    for key, value in parse_qsl(query_string, keep_blank_values=True):
        existing = query.get(key)
        if existing is None:
            query[key] = value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            query[key] = [existing, value]
    return query


@dataclass(frozen=True, slots=True)
class NormalizedRequest:
    """The request as the wrapped application should see it."""

    method: str
    path: str
    query: Mapping[str, QueryValue]
    query_string: bytes = b""
    headers: tuple[tuple[bytes, bytes], ...] = field(default=())
    original_path: str = ""

    @classmethod
    def from_url(
        cls,
        method: str,
        url: str,
        headers: Iterable[tuple[bytes, bytes]] = (),
    ) -> "NormalizedRequest":
        parts = urlsplit(url)
        path = parts.path or "/"
        return cls(
            method=method.upper(),
            path=strip_prefix(path),
            query=parse_query(parts.query),
            query_string=parts.query.encode("utf-8"),
            headers=tuple(headers),
            original_path=path,
        )

    @classmethod
    def from_scope(cls, scope: Mapping[str, Any]) -> "NormalizedRequest":
        path = scope.get("path") or "/"
        query_string = scope.get("query_string", b"")
        return cls(
            method=scope.get("method", "GET"),
            path=strip_prefix(path),
            query=parse_query(query_string),
            query_string=query_string,
            headers=tuple((bytes(k), bytes(v)) for k, v in scope.get("headers", ())),
            original_path=path,
        )

    @property
    def url(self) -> str:
        if not self.query_string:
            return self.path
        return f"{self.path}?{self.query_string.decode('utf-8', errors='replace')}"

    def to_scope(self, scope: Mapping[str, Any]) -> dict[str, Any]:
        """Build a new ASGI scope; the inbound one is left untouched."""
        raw_path = scope.get("raw_path")
        if raw_path:
            # Some servers leave the query string on raw_path.
            raw_path = raw_path.split(b"?", 1)[0]
            raw_path = strip_prefix(raw_path.decode("latin-1")).encode("latin-1")
        else:
            raw_path = quote(self.path).encode("ascii")
        rewritten = dict(scope)
        rewritten.update(
            method=self.method,
            path=self.path,
            raw_path=raw_path,
            query_string=self.query_string,
            headers=list(self.headers),
            query={
                key: list(value) if isinstance(value, list) else value
                for key, value in self.query.items()
            },
        )
        return rewritten
