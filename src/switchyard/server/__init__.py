"""Host boundary: turn a router dispatch into a response, failures included."""

from switchyard.server.handler import handle_request

__all__ = ["handle_request"]
