"""Tests for collection headers and the response envelope."""
import json

from services.response_envelope import (
    TOTAL_BY_STATUS_HEADER,
    TOTAL_HEADER,
    TOTAL_PAGES_HEADER,
    build_collection_headers,
    decode_status_counts,
    encode_status_counts,
    envelope_response,
    unwrap_envelope,
)


def test__build_collection_headers__totals_only() -> None:
    """Totals are plain integer strings; no status header without counts."""
    headers = build_collection_headers(total=23, total_pages=3)

    assert headers == {TOTAL_HEADER: "23", TOTAL_PAGES_HEADER: "3"}


def test__build_collection_headers__status_counts_are_json() -> None:
    """Per-status counts travel as one JSON object."""
    counts = {"all": 8, "publish": 5, "future": 0, "draft": 3}

    headers = build_collection_headers(total=5, total_pages=1, status_counts=counts)

    assert json.loads(headers[TOTAL_BY_STATUS_HEADER]) == counts


def test__build_collection_headers__empty_counts_still_sent() -> None:
    """An empty counts mapping is still encoded (distinct from no counts)."""
    headers = build_collection_headers(total=0, total_pages=0, status_counts={})

    assert headers[TOTAL_BY_STATUS_HEADER] == "{}"


def test__build_collection_headers__link() -> None:
    """Link entries are joined into one header."""
    headers = build_collection_headers(
        total=30,
        total_pages=3,
        links=['<http://x/?page=1>; rel="prev"', '<http://x/?page=3>; rel="next"'],
    )

    assert headers["Link"] == '<http://x/?page=1>; rel="prev", <http://x/?page=3>; rel="next"'


def test__encode_status_counts__is_compact_and_keeps_order() -> None:
    """The header value has no whitespace and keeps bucket order."""
    encoded = encode_status_counts({"all": 2, "publish": 1, "future": 0, "draft": 1})

    assert encoded == '{"all":2,"publish":1,"future":0,"draft":1}'


def test__decode_status_counts__inverts_encoding() -> None:
    """Decoding an encoded value gives the original counts."""
    counts = {"all": 8, "publish": 5, "future": 0, "draft": 3}

    assert decode_status_counts(encode_status_counts(counts)) == counts


def test__envelope_response__wraps_status_headers_and_body() -> None:
    """The envelope carries everything the response would have carried."""
    headers = {TOTAL_HEADER: "1", TOTAL_PAGES_HEADER: "1"}
    body = [{"id": 1}]

    envelope = envelope_response(200, headers, body)

    assert envelope == {"body": body, "status": 200, "headers": headers}
    assert unwrap_envelope(envelope) == (200, headers, body)


def test__envelope_response__copies_headers() -> None:
    """Later changes to the header dict do not leak into the envelope."""
    headers = {TOTAL_HEADER: "1"}

    envelope = envelope_response(200, headers, [])
    headers[TOTAL_HEADER] = "2"

    assert envelope["headers"][TOTAL_HEADER] == "1"
