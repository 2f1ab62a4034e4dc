"""Response error extraction for load test observability.

Parses Storefront API error responses into human-readable messages. Every
refusal uses the same envelope:

    {"error": {"code": "...", "message": "...", ...detail}}
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests import Response


def extract_error_detail(response: Response) -> str:
    """Extract a compact error message suitable for Locust failure messages and log lines."""
    try:
        body = response.json()
    except ValueError:
        text = getattr(response, "text", "") or ""
        return text[:300] or "(empty response body)"

    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        code = error.get("code", "ERROR")
        message = error.get("message", "")
        fields = error.get("fields")
        if fields:
            return f"{code}: {message} | " + " | ".join(f"{k}: {v}" for k, v in fields.items())
        return f"{code}: {message}"

    return str(body)[:300]


def is_stock_refusal(response: Response) -> bool:
    """True when a 409 is a legitimate stock shortfall rather than a server fault."""
    if response.status_code != 409:
        return False
    try:
        code = response.json()["error"]["code"]
    except (ValueError, KeyError, TypeError):
        return False
    return code in {"STOCK_EXCEEDED", "INSUFFICIENT_STOCK"}
