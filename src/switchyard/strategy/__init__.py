"""Strategies — how handler results become responses and failures are handled.

ApplicationStrategy -- default; failures propagate to the host boundary
JsonStrategy -- JSON bodies and JSON error responses
"""

from switchyard.strategy.application import ApplicationStrategy
from switchyard.strategy.base import BaseStrategy, Strategy
from switchyard.strategy.json import JsonStrategy

__all__ = [
    "ApplicationStrategy",
    "BaseStrategy",
    "JsonStrategy",
    "Strategy",
]
