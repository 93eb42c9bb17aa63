"""
Exception hierarchy for etcd client operations.

Every failed call raises exactly one of three kinds of error:
- EtcdError: etcd understood the request and refused it (key exists,
  key not found, directory not empty, ...). Subclasses are chosen by
  the numeric errorCode; the message text is never inspected.
- TransportError: the request could not be completed, or the reply could
  not be parsed at all.
- DecodeError: the reply parsed but did not have the expected shape.

Catching EtcdError separates "invalid given current cluster state" (often
benign, e.g. a lock already held) from failures that need escalation.

Per project patterns:
- Inherit from a shared base exception type
- Store context data in attributes for error handling
- Include descriptive message with relevant details
"""

from enum import IntEnum

from operator_etcd.types import ErrorPayload


class ErrorCode(IntEnum):
    """
    etcd v2 error codes.

    Based on: https://etcd.io/docs/v2.3/errorcode/
    """

    # Command related errors
    KEY_NOT_FOUND = 100
    TEST_FAILED = 101
    NOT_FILE = 102
    NO_MORE_PEER = 103
    NOT_DIR = 104
    NODE_EXIST = 105
    KEY_IS_PRESERVED = 106
    ROOT_READ_ONLY = 107
    DIR_NOT_EMPTY = 108
    EXISTING_PEER_ADDR = 109
    UNAUTHORIZED = 110

    # Post form related errors
    VALUE_REQUIRED = 200
    PREV_VALUE_REQUIRED = 201
    TTL_NAN = 202
    INDEX_NAN = 203
    VALUE_OR_TTL_REQUIRED = 204
    TIMEOUT_NAN = 205
    NAME_REQUIRED = 206
    INDEX_OR_VALUE_REQUIRED = 207
    INDEX_VALUE_MUTEX = 208
    INVALID_FIELD = 209
    INVALID_FORM = 210
    REFRESH_VALUE = 211
    REFRESH_TTL_REQUIRED = 212

    # Raft related errors
    RAFT_INTERNAL = 300
    LEADER_ELECT = 301

    # etcd related errors
    WATCHER_CLEARED = 400
    EVENT_INDEX_CLEARED = 401
    STANDBY_INTERNAL = 402
    INVALID_ACTIVE_SIZE = 403
    INVALID_REMOVE_DELAY = 404

    # Client related errors
    CLIENT_INTERNAL = 500


class EtcdClientError(Exception):
    """Base error type for all operator-etcd exceptions."""


class EtcdError(EtcdClientError):
    """
    Raised when etcd refuses a request for a domain reason.

    Attributes:
        error_code: Numeric etcd error code (see ErrorCode).
        message: Human-readable text from etcd. Advisory only.
        cause: Key or path implicated in the error, if reported.
        index: Cluster index at the time of the error, if reported.
    """

    def __init__(
        self,
        error_code: int,
        message: str,
        cause: str | None = None,
        index: int | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.cause = cause
        self.index = index
        detail = f" ({cause})" if cause else ""
        super().__init__(f"etcd error {error_code}: {message}{detail}")

    @property
    def code(self) -> ErrorCode | None:
        """The error code as an ErrorCode member, or None if etcd sent an unknown one."""
        try:
            return ErrorCode(self.error_code)
        except ValueError:
            return None


class KeyNotFoundError(EtcdError):
    """Raised when the target key does not exist (100)."""


class CompareFailedError(EtcdError):
    """Raised when a prevValue/prevIndex condition does not hold (101)."""


class NotAFileError(EtcdError):
    """Raised when a value operation targets a directory (102)."""


class NotDirectoryError(EtcdError):
    """Raised when a directory operation targets a plain key (104)."""


class KeyAlreadyExistsError(EtcdError):
    """Raised when a create targets a key that already exists (105)."""


class RootReadOnlyError(EtcdError):
    """Raised on an attempt to modify the root directory (107)."""


class DirectoryNotEmptyError(EtcdError):
    """Raised when deleting a directory that still has children without recursion (108)."""


_ERROR_TYPES: dict[int, type[EtcdError]] = {
    ErrorCode.KEY_NOT_FOUND: KeyNotFoundError,
    ErrorCode.TEST_FAILED: CompareFailedError,
    ErrorCode.NOT_FILE: NotAFileError,
    ErrorCode.NOT_DIR: NotDirectoryError,
    ErrorCode.NODE_EXIST: KeyAlreadyExistsError,
    ErrorCode.ROOT_READ_ONLY: RootReadOnlyError,
    ErrorCode.DIR_NOT_EMPTY: DirectoryNotEmptyError,
}


def error_from_payload(payload: ErrorPayload) -> EtcdError:
    """
    Build the EtcdError subclass matching an error envelope.

    Codes without a dedicated subclass produce a plain EtcdError that
    still carries the code.

    Args:
        payload: Decoded error envelope.

    Returns:
        EtcdError instance ready to raise.
    """
    error_type = _ERROR_TYPES.get(payload.error_code, EtcdError)
    return error_type(
        error_code=payload.error_code,
        message=payload.message,
        cause=payload.cause,
        index=payload.index,
    )


class TransportError(EtcdClientError):
    """
    Raised when a request could not be completed or its reply not parsed.

    Covers connection failures, timeouts, bodies that are not JSON, and
    non-2xx replies without an etcd error envelope.

    Attributes:
        status_code: HTTP status if a reply was received, else None.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class DecodeError(EtcdClientError):
    """
    Raised when a reply parsed as JSON but did not match the expected model.

    Attributes:
        model: Name of the model the payload was decoded into.
    """

    def __init__(self, model: str, detail: str) -> None:
        self.model = model
        super().__init__(f"Could not decode {model}: {detail}")
