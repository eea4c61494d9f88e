"""Response assertion helpers for switchyard tests.

Each assertion produces a clear error message on failure.
"""

import json as json_module
from typing import Any

from switchyard.http.response import JSON_CONTENT_TYPE, Response


def assert_status(response: Response, status: int) -> None:
    """Assert the response has the expected status."""
    assert response.status == status, (
        f"Expected status {status}, got {response.status}.\n"
        f"Response body: {response.text[:500]}"
    )


def assert_json_error(
    response: Response,
    status: int,
    *,
    error: str | None = None,
    field: str | None = None,
) -> dict[str, Any]:
    """Assert the response is a JSON error body and return it.

    ``error`` checks the machine-readable slug; ``field`` checks that the
    body's ``errors`` mapping has messages for that field.
    """
    assert_status(response, status)
    assert response.content_type.startswith(JSON_CONTENT_TYPE), (
        f"Expected a JSON error body, got content type {response.content_type!r}"
    )
    try:
        body = json_module.loads(response.body_bytes)
    except ValueError as exc:
        raise AssertionError(f"Response body is not JSON: {response.text[:500]}") from exc

    assert body.get("status") == "error", f"Not an error body: {body!r}"
    assert body.get("code") == status, f"Error code {body.get('code')!r} does not match {status}"
    if error is not None:
        assert body.get("error") == error, f"Expected error {error!r}, got {body.get('error')!r}"
    if field is not None:
        assert body.get("errors", {}).get(field), (
            f"No errors reported for {field!r}; errors: {body.get('errors')!r}"
        )
    return body
