"""reqcraft executor - HTTP request execution."""

import base64
import json
import time
from typing import Any

import requests

JSON_CONTENT_TYPE = "application/json"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class RequestResult:
    """Result of an HTTP request."""

    def __init__(self):
        self.status_code: int = 0
        self.headers: dict[str, str] = {}
        self.body: Any = None  # parsed JSON or raw text
        self.elapsed_ms: float = 0
        self.error: str | None = None
        self.raw_text: str = ""


def parse_header(header: str) -> tuple[str, str]:
    """Split 'Name: Value'. Raises ValueError when there is no name or colon."""
    if ":" not in header:
        raise ValueError(f"Invalid header {header!r}, format must be 'KEY: VALUE'")
    name, value = header.split(":", 1)
    name = name.strip()
    if not name:
        raise ValueError(f"Invalid header {header!r}, format must be 'KEY: VALUE'")
    return name, value.strip()


def build_auth_headers(
    bearer: str | None = None,
    basic: str | None = None,
) -> dict[str, str]:
    """Authorization header from a bearer token or 'user[:password]' credentials."""
    if bearer:
        return {"Authorization": f"Bearer {bearer}"}
    if basic:
        username, _, password = basic.partition(":")
        if not username:
            raise ValueError("Invalid basic auth credentials, format must be 'user:password'")
        credentials = base64.b64encode(f"{username}:{password}".encode()).decode()
        return {"Authorization": f"Basic {credentials}"}
    return {}


def encode_body(body: Any) -> str | None:
    """Serialize a template body: JSON values as JSON text, strings as-is."""
    if body is None:
        return None
    if isinstance(body, str):
        return body
    return json.dumps(body)


def execute_request(
    method: str,
    url: str,
    headers: dict[str, str] | None = None,
    body: str | None = None,
    timeout: int = 30,
) -> RequestResult:
    """Execute an HTTP request and return structured result.

    - Attempts to parse response as JSON
    - Falls back to raw text
    - Captures timing
    - Never raises - always returns RequestResult with error field set
    """
    result = RequestResult()

    try:
        start = time.monotonic()
        resp = requests.request(
            method=method.upper(),
            url=url,
            headers=headers,
            data=body.encode("utf-8") if body else None,
            timeout=timeout,
            allow_redirects=True,
        )
        result.elapsed_ms = (time.monotonic() - start) * 1000

        result.status_code = resp.status_code
        result.headers = dict(resp.headers)
        result.raw_text = resp.text

        try:
            result.body = resp.json()
        except (json.JSONDecodeError, ValueError):
            result.body = resp.text

    except requests.exceptions.Timeout:
        result.error = f"Request timed out after {timeout}s"
    except requests.exceptions.ConnectionError as e:
        result.error = f"Connection error: {e}"
    except requests.exceptions.RequestException as e:
        result.error = f"Request failed: {e}"

    return result
