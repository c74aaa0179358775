"""
Response assembly for story listings.

Collection metadata travels in headers: totals as plain integers, per-status
counts as one JSON object (headers cannot carry structured values). Envelope
mode inlines status and headers into the body for clients that cannot read
either, such as preloaded requests.
"""
import json
from typing import Any

TOTAL_HEADER = "X-WP-Total"
TOTAL_PAGES_HEADER = "X-WP-TotalPages"
TOTAL_BY_STATUS_HEADER = "X-WP-TotalByStatus"


def encode_status_counts(counts: dict[str, int]) -> str:
    """Encode status-bucket counts for the X-WP-TotalByStatus header."""
    return json.dumps(counts, separators=(",", ":"))


def decode_status_counts(header_value: str) -> dict[str, int]:
    """Inverse of encode_status_counts()."""
    return {key: int(value) for key, value in json.loads(header_value).items()}


def build_collection_headers(
    total: int,
    total_pages: int,
    status_counts: dict[str, int] | None = None,
    links: list[str] | None = None,
) -> dict[str, str]:
    """
    Build the metadata headers for a collection response.

    Args:
        total: Total matching stories (before pagination).
        total_pages: Number of pages at the requested page size.
        status_counts: Optional per-status-bucket counts.
        links: Optional pre-formatted Link header entries (prev/next).
    """
    headers = {
        TOTAL_HEADER: str(total),
        TOTAL_PAGES_HEADER: str(total_pages),
    }
    if status_counts is not None:
        headers[TOTAL_BY_STATUS_HEADER] = encode_status_counts(status_counts)
    if links:
        headers["Link"] = ", ".join(links)
    return headers


def envelope_response(status_code: int, headers: dict[str, str], body: Any) -> dict[str, Any]:
    """
    Wrap status, headers and body into a single body-only structure.

    The wrapped values are copied as-is; the envelope itself is sent with a
    200 status.
    """
    return {
        "body": body,
        "status": status_code,
        "headers": dict(headers),
    }


def unwrap_envelope(envelope: dict[str, Any]) -> tuple[int, dict[str, str], Any]:
    """Return (status, headers, body) from an enveloped response."""
    return envelope["status"], envelope["headers"], envelope["body"]
