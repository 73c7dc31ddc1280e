"""Error taxonomy for the Apollo client."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    INVALID_ARGUMENT = "invalid_argument"
    UNSUPPORTED_PROTOCOL = "unsupported_protocol"
    HOST_UNREACHABLE = "host_unreachable"
    TIMEOUT = "timeout"
    IO_ERROR = "io_error"
    DECODE_ERROR = "decode_error"
    SERVER_ERROR = "server_error"


class ApolloError(Exception):
    """Base class for every error raised by this package."""

    kind: ErrorKind = ErrorKind.IO_ERROR


class InvalidArgument(ApolloError, ValueError):
    kind = ErrorKind.INVALID_ARGUMENT


class UnsupportedProtocol(ApolloError):
    """Raised for any scheme other than plain ``http``."""

    kind = ErrorKind.UNSUPPORTED_PROTOCOL


class TransportError(ApolloError):
    """Network level failure while talking to the config service."""

    kind = ErrorKind.IO_ERROR


class HostUnreachable(TransportError):
    kind = ErrorKind.HOST_UNREACHABLE


class Timeout(TransportError):
    """A request phase (or the whole-request watchdog) expired."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, message: str, phase: str) -> None:
        super().__init__(message)
        self.phase = phase


class TransportIOError(TransportError):
    kind = ErrorKind.IO_ERROR


class DecodeError(ApolloError, ValueError):
    kind = ErrorKind.DECODE_ERROR


class ServerError(ApolloError):
    kind = ErrorKind.SERVER_ERROR

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class ClientInitError(ApolloError):
    """Single error surfaced when a client cannot be constructed.

    ``kind`` mirrors the kind of the underlying failure, which is also kept
    as ``__cause__`` when there is one.
    """

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind

    @classmethod
    def wrap(cls, exc: ApolloError, context: Optional[str] = None) -> "ClientInitError":
        message = f"{context}: {exc}" if context else str(exc)
        return cls(exc.kind, message)
