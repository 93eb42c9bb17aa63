"""
etcd v2 Pydantic response types.

This module provides Pydantic models for parsing responses from:
- Keys API (/v2/keys): Response envelope and recursive Node tree
- Stats API (/v2/stats): Leader, self (member) and store statistics
- Version endpoint (/version)
- Error envelope returned alongside non-2xx statuses

All models are frozen value snapshots built from a single payload. The
wire uses camelCase names; models expose snake_case attributes and accept
either form on input.

Notes:
- Every Node field is optional. Absence is kept as None and never
  collapsed to "", 0 or False ("" is a valid stored value)
- Present fields must have the right shape: "true" is not a bool and
  "60" is not a TTL, so scalar fields use strict types
- Children order is whatever the server sent
"""

from collections.abc import Iterator
from enum import Enum

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    model_validator,
)


class _EtcdModel(BaseModel):
    """Base for all etcd payload models."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)


# =============================================================================
# Keys API Types
# =============================================================================
# Based on: https://etcd.io/docs/v2.3/api/
# Response structure: {"action": "set", "node": {...}, "prevNode": {...}}


class Node(_EtcdModel):
    """
    An etcd key or directory at a point in time.

    Attributes:
        key: Full path of the key. Absent for the root directory.
        value: Stored value. Only leaf nodes carry one.
        dir: True for directories. Absent means False.
        children: Child nodes ("nodes" on the wire). Only directories have
            them, and only when the request listed them (direct children,
            or the full subtree for recursive reads).
        created_index: Cluster index at which the node was created.
        modified_index: Cluster index of the last change to the node.
        ttl: Seconds remaining until the key expires.
        expiration: ISO 8601 expiry timestamp, present iff ttl is.
    """

    key: StrictStr | None = None
    value: StrictStr | None = None
    dir: StrictBool | None = None
    children: tuple["Node", ...] | None = Field(default=None, alias="nodes")
    created_index: StrictInt | None = Field(default=None, alias="createdIndex")
    modified_index: StrictInt | None = Field(default=None, alias="modifiedIndex")
    ttl: StrictInt | None = None
    expiration: StrictStr | None = None

    @model_validator(mode="after")
    def _check_shape(self) -> "Node":
        if self.dir and self.value is not None:
            raise ValueError(f"directory node {self.key!r} cannot carry a value")
        if self.children is not None and not self.dir:
            raise ValueError(f"non-directory node {self.key!r} cannot have children")
        if (self.ttl is None) != (self.expiration is None):
            raise ValueError(
                f"node {self.key!r}: ttl and expiration must be present together"
            )
        return self

    @property
    def is_dir(self) -> bool:
        """True if this node is a directory."""
        return bool(self.dir)

    def walk(self) -> Iterator["Node"]:
        """
        Iterate over this node and all decoded descendants.

        Depth-first, pre-order, keeping the server's child order.
        """
        yield self
        for child in self.children or ():
            yield from child.walk()


Node.model_rebuild()


class Response(_EtcdModel):
    """
    Envelope returned by every keys API call.

    Attributes:
        action: Verb performed ("get", "set", "create", "update", "delete",
            "compareAndSwap", "compareAndDelete", "expire").
        node: State of the key after the action.
        prev_node: State before the action, when something was replaced
            or removed.
    """

    action: StrictStr
    node: Node
    prev_node: Node | None = Field(default=None, alias="prevNode")


# =============================================================================
# Stats API Types
# =============================================================================
# Based on: https://etcd.io/docs/v2.3/api/#statistics


class CountStats(_EtcdModel):
    """Counts of Raft RPC request successes and failures to a follower."""

    fail: StrictInt | None = None
    success: StrictInt | None = None


class LatencyStats(_EtcdModel):
    """Latency of Raft RPCs to a follower, in milliseconds."""

    average: StrictFloat | None = None
    current: StrictFloat | None = None
    maximum: StrictFloat | None = None
    minimum: StrictFloat | None = None
    standard_deviation: StrictFloat | None = Field(default=None, alias="standardDeviation")


class FollowerStats(_EtcdModel):
    """Health of a single follower as seen by the leader."""

    counts: CountStats | None = None
    latency: LatencyStats | None = None


class LeaderStats(_EtcdModel):
    """
    Response from GET /v2/stats/leader.

    Example response:
    {
        "leader": "924e2e83e93f2560",
        "followers": {
            "6e3bd23ae5f1eae0": {
                "counts": {"fail": 0, "success": 745},
                "latency": {"average": 0.017, "current": 0.019,
                            "maximum": 1.02, "minimum": 0.012,
                            "standardDeviation": 0.048}
            }
        }
    }
    """

    leader: StrictStr
    followers: dict[str, FollowerStats]


class NodeState(str, Enum):
    """Raft role of a member."""

    LEADER = "StateLeader"
    FOLLOWER = "StateFollower"


class LeaderInfo(_EtcdModel):
    """Leader details included with member statistics."""

    leader: StrictStr
    start_time: StrictStr = Field(alias="startTime")
    uptime: StrictStr


class SelfStats(_EtcdModel):
    """
    Response from GET /v2/stats/self.

    Rate fields are role-specific: recv_* only appear on followers and
    send_* only on a leader with peers. None means "not applicable",
    not zero.
    """

    id: StrictStr
    name: StrictStr
    leader_info: LeaderInfo = Field(alias="leaderInfo")
    recv_append_request_cnt: StrictInt = Field(alias="recvAppendRequestCnt")
    send_append_request_cnt: StrictInt = Field(alias="sendAppendRequestCnt")
    recv_bandwidth_rate: StrictFloat | None = Field(default=None, alias="recvBandwidthRate")
    recv_pkg_rate: StrictFloat | None = Field(default=None, alias="recvPkgRate")
    send_bandwidth_rate: StrictFloat | None = Field(default=None, alias="sendBandwidthRate")
    send_pkg_rate: StrictFloat | None = Field(default=None, alias="sendPkgRate")
    state: NodeState
    start_time: StrictStr = Field(alias="startTime")


class StoreStats(_EtcdModel):
    """Response from GET /v2/stats/store. Operation totals for the key store."""

    gets_success: StrictInt | None = Field(default=None, alias="getsSuccess")
    gets_fail: StrictInt | None = Field(default=None, alias="getsFail")
    sets_success: StrictInt | None = Field(default=None, alias="setsSuccess")
    sets_fail: StrictInt | None = Field(default=None, alias="setsFail")
    delete_success: StrictInt | None = Field(default=None, alias="deleteSuccess")
    delete_fail: StrictInt | None = Field(default=None, alias="deleteFail")
    update_success: StrictInt | None = Field(default=None, alias="updateSuccess")
    update_fail: StrictInt | None = Field(default=None, alias="updateFail")
    create_success: StrictInt | None = Field(default=None, alias="createSuccess")
    create_fail: StrictInt | None = Field(default=None, alias="createFail")
    compare_and_swap_success: StrictInt | None = Field(
        default=None, alias="compareAndSwapSuccess"
    )
    compare_and_swap_fail: StrictInt | None = Field(
        default=None, alias="compareAndSwapFail"
    )
    compare_and_delete_success: StrictInt | None = Field(
        default=None, alias="compareAndDeleteSuccess"
    )
    compare_and_delete_fail: StrictInt | None = Field(
        default=None, alias="compareAndDeleteFail"
    )
    expire_count: StrictInt | None = Field(default=None, alias="expireCount")
    watchers: StrictInt | None = None


class VersionInfo(_EtcdModel):
    """Response from GET /version."""

    etcdserver: StrictStr
    etcdcluster: StrictStr | None = None


# =============================================================================
# Error Envelope
# =============================================================================
# {"errorCode": 100, "message": "Key not found", "cause": "/foo", "index": 12}


class ErrorPayload(_EtcdModel):
    """Error body etcd sends with a refused request."""

    error_code: StrictInt = Field(alias="errorCode")
    message: StrictStr
    cause: StrictStr | None = None
    index: StrictInt | None = None
