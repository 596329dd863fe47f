"""reqcraft output - request/response formatting for the terminal."""

import json


def _format_headers(headers: dict[str, str]) -> list[str]:
    return [f"  {key}: {value}" for key, value in headers.items()]


def format_request(method: str, url: str, headers: dict[str, str] | None = None) -> str:
    """REQUEST block shown in verbose mode."""
    lines = [f"REQUEST: {method.upper()} {url}"]
    if headers:
        lines.append("REQUEST HEADERS:")
        lines.extend(_format_headers(headers))
    return "\n".join(lines)


def format_output(result, verbose: bool = False) -> str:
    """Format a RequestResult.

    Always STATUS/TIME and the body; response headers only when verbose.
    """
    if result.error:
        return f"ERROR: {result.error}"

    lines: list[str] = [
        f"STATUS: {result.status_code}",
        f"TIME: {int(result.elapsed_ms)}ms",
    ]

    if verbose and result.headers:
        lines.append("HEADERS:")
        lines.extend(_format_headers(result.headers))

    body = result.body
    if body is not None:
        lines.append("BODY:")
        if isinstance(body, dict | list):
            lines.append(json.dumps(body, indent=2))
        else:
            lines.append(str(body))

    return "\n".join(lines)
