"""Runtime support imported by generated clients.

Generated ``Client`` classes subclass ``BaseClient`` and every method they
expose returns a ``Result`` envelope: transport and API failures are
reported through ``Result.error`` instead of being raised.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Generic, Literal, Mapping, TypedDict, TypeVar

import requests

from .logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
FilterT = TypeVar("FilterT")


class Pagination(TypedDict, total=False):
    """Page-based (``page``, ``pageSize``) or offset-based (``start``, ``limit``) paging."""

    page: int
    pageSize: int
    start: int
    limit: int
    withCount: bool


class QueryParams(TypedDict, Generic[FilterT], total=False):
    """Query parameters of a list or fetch request, typed by the filters they accept."""

    filters: FilterT
    sort: str | list[str]
    pagination: Pagination
    populate: Any
    fields: list[str]
    locale: str
    status: Literal["draft", "published"]

DEFAULT_BASE_URL = "http://localhost:1337"
DEFAULT_TIMEOUT = 30.0

# Friendlier messages for the statuses users hit most often
STATUS_HINTS = {
    400: "The request was rejected as invalid. Check the submitted data.",
    401: "Authentication is required. Set a valid API token with set_token().",
    403: "The token is not allowed to perform this action. Check its permissions.",
    404: "The requested resource was not found. Check the path and identifier.",
    429: "Too many requests. Wait before trying again.",
    500: "The server failed to process the request. Check the server logs.",
}

ERROR_KINDS = ("http", "connection", "timeout", "decode")


@dataclass
class ApiError:
    """A failed request, as reported by ``Result.error``."""

    message: str
    status: int | None = None
    kind: str = "http"
    details: Any = None

    def __post_init__(self) -> None:
        if self.kind not in ERROR_KINDS:
            raise ValueError(f"Unknown error kind: {self.kind}")

    @property
    def user_message(self) -> str:
        """Message suitable for showing to an end user."""
        if self.kind == "connection":
            return "Could not connect to the server. Check the base URL and network."
        if self.kind == "timeout":
            return "The server did not respond in time."
        if self.status in STATUS_HINTS:
            return STATUS_HINTS[self.status]
        return self.message

    def __str__(self) -> str:
        prefix = f"{self.status} " if self.status is not None else ""
        return f"{prefix}{self.kind} error: {self.message}"


class ApiRequestError(Exception):
    """Raised by ``Result.unwrap`` on a failed result."""

    def __init__(self, error: ApiError):
        super().__init__(str(error))
        self.error = error


@dataclass
class Result(Generic[T]):
    """Outcome of one API call: either a value or an error."""

    value: T | None = None
    error: ApiError | None = None
    meta: dict[str, Any] | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, raising ``ApiRequestError`` if the call failed."""
        if self.error is not None:
            raise ApiRequestError(self.error)
        return self.value  # type: ignore[return-value]

    @classmethod
    def failure(cls, error: ApiError) -> "Result[Any]":
        return cls(error=error)


@dataclass
class ClientConfig:
    """Connection settings for a generated client."""

    base_url: str = DEFAULT_BASE_URL
    token: str | None = None
    timeout: float = DEFAULT_TIMEOUT
    headers: dict[str, str] = field(default_factory=dict)
    session: requests.Session | None = None
    api_prefix: str | None = None


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_query(params: Mapping[str, Any], prefix: str = "") -> list[tuple[str, str]]:
    """Flatten nested query parameters into bracketed keys.

    ``{"filters": {"title": {"$eq": "x"}}, "sort": ["title:asc"]}`` becomes
    ``[("filters[title][$eq]", "x"), ("sort[0]", "title:asc")]``.

    Args:
        params: Nested mapping of filters, sort, pagination, populate, ...
        prefix: Key prefix used while recursing.

    Returns:
        Ordered list of ``(key, value)`` pairs; ``None`` values are dropped.
    """
    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        if value is None:
            continue
        if isinstance(value, Mapping):
            pairs.extend(encode_query(value, name))
        elif isinstance(value, (list, tuple)):
            for index, item in enumerate(value):
                item_name = f"{name}[{index}]"
                if isinstance(item, Mapping):
                    pairs.extend(encode_query(item, item_name))
                elif item is not None:
                    pairs.append((item_name, _scalar(item)))
        else:
            pairs.append((name, _scalar(value)))
    return pairs


def _is_html(response: requests.Response) -> bool:
    content_type = response.headers.get("Content-Type", "")
    if "text/html" in content_type:
        return True
    return response.text.lstrip()[:1] == "<"


def parse_response(response: requests.Response) -> Result[Any]:
    """Turn an HTTP response into a ``Result``.

    Successful payloads are unwrapped from their ``{"data": ...}`` envelope;
    ``meta`` (pagination) is kept on the result.
    """
    status = response.status_code

    if status == 204 or not response.content:
        if response.ok:
            return Result(value=None)
        return Result.failure(ApiError(response.reason or "Request failed", status))

    if _is_html(response):
        message = "Server returned an HTML page instead of JSON"
        kind = "http" if not response.ok else "decode"
        return Result.failure(ApiError(message, status, kind=kind))

    try:
        payload = response.json()
    except ValueError as e:
        return Result.failure(
            ApiError(f"Invalid JSON in response: {e}", status, kind="decode")
        )

    if not response.ok:
        error = payload.get("error") if isinstance(payload, dict) else None
        if isinstance(error, dict):
            return Result.failure(
                ApiError(
                    str(error.get("message") or response.reason or "Request failed"),
                    status,
                    details=error.get("details"),
                )
            )
        return Result.failure(
            ApiError(response.reason or "Request failed", status, details=payload)
        )

    if isinstance(payload, dict) and "data" in payload:
        return Result(value=payload["data"], meta=payload.get("meta"))
    return Result(value=payload)


class BaseClient:
    """Shared transport for generated clients."""

    api_prefix = "/api"

    def __init__(self, config: ClientConfig | None = None, **options: Any) -> None:
        if config is None:
            config = ClientConfig(**options)
        elif options:
            config = dataclasses.replace(config, **options)
        self.config = config
        self.session = config.session or requests.Session()

    def set_token(self, token: str | None) -> None:
        """Set (or clear) the bearer token sent with every request."""
        self.config.token = token

    def close(self) -> None:
        self.session.close()

    def _url(self, path: str) -> str:
        prefix = self.config.api_prefix
        if prefix is None:
            prefix = self.api_prefix
        return f"{self.config.base_url.rstrip('/')}{prefix.rstrip('/')}{path}"

    def _request(
        self,
        method: str,
        path: str,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
    ) -> Result[Any]:
        """Issue one request; never raises for transport or API failures."""
        headers = {"Accept": "application/json", **self.config.headers}
        if self.config.token:
            headers["Authorization"] = f"Bearer {self.config.token}"

        url = self._url(path)
        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(
                method,
                url,
                params=encode_query(params) if params else None,
                json=json,
                headers=headers,
                timeout=self.config.timeout,
            )
        except requests.Timeout as e:
            return Result.failure(ApiError(str(e), kind="timeout"))
        except requests.RequestException as e:
            return Result.failure(ApiError(str(e), kind="connection"))

        result = parse_response(response)
        if result.error is not None:
            logger.debug("%s %s failed: %s", method, url, result.error)
        return result


class BaseAPI:
    """A namespace of custom operations bound to a client."""

    def __init__(self, client: BaseClient) -> None:
        self.client = client

    def _request(
        self,
        method: str,
        path: str,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
    ) -> Result[Any]:
        return self.client._request(method, path, params=params, json=json)


__all__ = [
    "ApiError",
    "ApiRequestError",
    "BaseAPI",
    "BaseClient",
    "ClientConfig",
    "Pagination",
    "QueryParams",
    "Result",
    "encode_query",
    "parse_response",
]
