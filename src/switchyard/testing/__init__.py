"""Test utilities for switchyard routers.

    from switchyard.testing import TestClient, assert_json_error
"""

from switchyard.testing.assertions import assert_json_error, assert_status
from switchyard.testing.client import TestClient

__all__ = ["TestClient", "assert_json_error", "assert_status"]
