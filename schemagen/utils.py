"""Utility functions for loading schema and endpoint snapshots.

Snapshots are JSON documents read from local files or fetched from a URL
(for example the schema endpoint of a running content server).
"""

import json
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import requests

from .codegen.core.schema import (
    ExtraType,
    OperationDescriptor,
    SchemaModel,
    convert_extra_types,
    convert_extracted_schema,
    convert_operations,
)
from .logging_config import get_logger

logger = get_logger(__name__)


class SchemaLoaderError(Exception):
    """Raised when a snapshot cannot be loaded."""

    pass


def is_url(source: str) -> bool:
    parsed = urlparse(source)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def load_json_from_file(file_path: str | Path) -> tuple[str, Any]:
    """Load JSON data from a local file.

    Args:
        file_path: Path to the JSON file.

    Returns:
        Tuple of (source description, parsed JSON data).

    Raises:
        SchemaLoaderError: If the file is missing, unreadable or not JSON.
    """
    file_path = Path(file_path)
    logger.debug("Loading JSON from file: %s", file_path)

    if not file_path.exists():
        raise SchemaLoaderError(f"File not found: {file_path}")

    if file_path.suffix.lower() != ".json":
        logger.warning("File does not have .json extension: %s", file_path)

    try:
        with file_path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise SchemaLoaderError(f"Invalid JSON in file {file_path}: {e}") from e
    except OSError as e:
        raise SchemaLoaderError(f"Error reading file {file_path}: {e}") from e

    logger.info("Loaded JSON from %s", file_path)
    return str(file_path), data


def load_json_from_url(
    url: str, timeout: int = 30, token: str | None = None
) -> tuple[str, Any]:
    """Load JSON data from a URL.

    Args:
        url: URL to fetch JSON from.
        timeout: Request timeout in seconds.
        token: Optional bearer token for protected schema endpoints.

    Returns:
        Tuple of (source description, parsed JSON data).

    Raises:
        SchemaLoaderError: If the URL is invalid, the request fails, or the
            response isn't valid JSON.
    """
    logger.debug("Loading JSON from URL: %s", url)

    if not is_url(url):
        raise SchemaLoaderError(f"Invalid URL: {url}")

    headers = {"Accept": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"

    try:
        response = requests.get(url, timeout=timeout, headers=headers)
        response.raise_for_status()

        content_type = response.headers.get("content-type", "").lower()
        if "application/json" not in content_type and not url.endswith(".json"):
            logger.warning("URL %s does not have JSON content type: %s", url, content_type)

        data = response.json()
    except requests.exceptions.Timeout as e:
        raise SchemaLoaderError(f"Request timeout for URL: {url}") from e
    except requests.exceptions.ConnectionError as e:
        raise SchemaLoaderError(f"Connection error for URL: {url}") from e
    except requests.exceptions.HTTPError as e:
        raise SchemaLoaderError(
            f"HTTP error {e.response.status_code} for URL: {url}"
        ) from e
    except requests.exceptions.RequestException as e:
        raise SchemaLoaderError(f"Request error for URL {url}: {e}") from e
    except ValueError as e:
        raise SchemaLoaderError(f"Invalid JSON response from URL {url}: {e}") from e

    logger.info("Loaded JSON from %s", url)
    return url, data


def load_json(source: str | Path, timeout: int = 30, token: str | None = None) -> tuple[str, Any]:
    """Load JSON data from a file path or an http(s) URL."""
    if isinstance(source, str) and is_url(source):
        return load_json_from_url(source, timeout=timeout, token=token)
    return load_json_from_file(source)


def split_endpoint_payload(payload: Any) -> tuple[list[Any], list[Any]]:
    """Separate operation descriptors and extra types in an endpoint payload.

    Accepts either a bare list of descriptors or a mapping with
    ``endpoints`` and ``extraTypes`` (or ``extra_types``) keys.
    """
    if payload is None:
        return [], []
    if isinstance(payload, list):
        return payload, []
    if isinstance(payload, dict):
        endpoints = payload.get("endpoints") or []
        extra = payload.get("extraTypes", payload.get("extra_types")) or []
        return list(endpoints), list(extra)
    raise SchemaLoaderError(
        f"Endpoint payload must be a list or an object, got {type(payload).__name__}"
    )


def load_generation_inputs(
    schema_source: str | Path,
    endpoints_source: str | Path | None = None,
    timeout: int = 30,
    token: str | None = None,
) -> tuple[SchemaModel, list[OperationDescriptor], list[ExtraType]]:
    """Load a schema snapshot and, optionally, its endpoint descriptors.

    When no separate endpoints source is given, ``endpoints`` and
    ``extraTypes`` keys of the schema document are used if present.

    Returns:
        Tuple of (schema, operations, extra types).

    Raises:
        SchemaLoaderError: If a source cannot be loaded.
        SchemaError: If the schema document is malformed.
    """
    _, schema_payload = load_json(schema_source, timeout=timeout, token=token)
    schema = convert_extracted_schema(schema_payload)

    if endpoints_source is not None:
        _, endpoint_payload = load_json(endpoints_source, timeout=timeout, token=token)
    elif isinstance(schema_payload, dict):
        endpoint_payload = {
            "endpoints": schema_payload.get("endpoints"),
            "extraTypes": schema_payload.get("extraTypes"),
        }
    else:
        endpoint_payload = None

    raw_operations, raw_extra = split_endpoint_payload(endpoint_payload)
    return schema, convert_operations(raw_operations), convert_extra_types(raw_extra)
