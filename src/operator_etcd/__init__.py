"""
Typed asynchronous client for the etcd v2 HTTP API.

This package provides:

- EtcdClient: Key, directory, conditional-write and stats operations
- Pydantic response types: Response envelope, recursive Node tree, stats
- Error taxonomy separating etcd refusals (EtcdError and subclasses)
  from TransportError and DecodeError
- Settings and create_etcd_client for environment-based construction
"""

from operator_etcd.classifier import classify_response
from operator_etcd.config import Settings
from operator_etcd.errors import (
    CompareFailedError,
    DecodeError,
    DirectoryNotEmptyError,
    ErrorCode,
    EtcdClientError,
    EtcdError,
    KeyAlreadyExistsError,
    KeyNotFoundError,
    NotAFileError,
    NotDirectoryError,
    RootReadOnlyError,
    TransportError,
)
from operator_etcd.etcd_client import EtcdClient
from operator_etcd.factory import create_etcd_client
from operator_etcd.types import (
    CountStats,
    ErrorPayload,
    FollowerStats,
    LatencyStats,
    LeaderInfo,
    LeaderStats,
    Node,
    NodeState,
    Response,
    SelfStats,
    StoreStats,
    VersionInfo,
)

__all__ = [
    # Client
    "EtcdClient",
    "create_etcd_client",
    "Settings",
    "classify_response",
    # Keys API types
    "Node",
    "Response",
    # Stats types
    "LeaderStats",
    "FollowerStats",
    "CountStats",
    "LatencyStats",
    "SelfStats",
    "LeaderInfo",
    "NodeState",
    "StoreStats",
    "VersionInfo",
    # Errors
    "ErrorPayload",
    "ErrorCode",
    "EtcdClientError",
    "EtcdError",
    "KeyNotFoundError",
    "CompareFailedError",
    "NotAFileError",
    "NotDirectoryError",
    "KeyAlreadyExistsError",
    "RootReadOnlyError",
    "DirectoryNotEmptyError",
    "TransportError",
    "DecodeError",
]
