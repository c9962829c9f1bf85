"""
Exception hierarchy for the pool sniper.

Only ConfigurationError and ReconnectExhaustedError are fatal to the process.
Everything else is contained by the engine and reported through an alert.
"""

from typing import Any, Dict, Optional


class SniperError(Exception):
    """Base exception for all pool sniper errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(SniperError):
    """Raised when required settings are missing or malformed."""

    pass


class StreamConnectionError(SniperError):
    """Raised when the event stream transport fails or closes."""

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.endpoint = endpoint


class ReconnectExhaustedError(SniperError):
    """Raised when the stream has used up its reconnect budget."""

    def __init__(
        self,
        message: str,
        attempts: int = 0,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.attempts = attempts


class ApprovalError(SniperError):
    """Raised when the spend asset could not be approved for the router."""

    def __init__(
        self,
        message: str,
        token: Optional[str] = None,
        tx_hash: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.token = token
        self.tx_hash = tx_hash


class SwapError(SniperError):
    """Raised when a swap was not submitted, reverted, or never confirmed."""

    def __init__(
        self,
        message: str,
        tx_hash: Optional[str] = None,
        reason: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.tx_hash = tx_hash
        self.reason = reason


class MonitorReadError(SniperError):
    """Raised when the position monitor cannot read the held balance."""

    pass


class InvalidTransitionError(SniperError):
    """Raised on a trade state transition that is not allowed from the current phase."""

    def __init__(
        self,
        message: str,
        current: Optional[str] = None,
        requested: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.current = current
        self.requested = requested
