"""
etcd v2 keys and stats API client.

This module provides the EtcdClient class for manipulating hierarchical
keys (values, directories, TTLs, conditional writes) and reading cluster
statistics over the etcd v2 HTTP API.

EtcdClient receives an injected httpx.AsyncClient with base_url set to an
etcd member. The client itself is a frozen value: it owns no cross-call
state, so a single instance can be shared by concurrent callers.
Connection pooling, TLS and timeouts belong to the injected httpx client.

Every operation is one HTTP round trip. Nothing is retried or cached.

API Documentation:
- https://etcd.io/docs/v2.3/api/
"""

import logging
from dataclasses import dataclass
from typing import Any, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel

from operator_etcd.classifier import classify_response
from operator_etcd.errors import TransportError
from operator_etcd.types import (
    LeaderStats,
    Response,
    SelfStats,
    StoreStats,
    VersionInfo,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _flag(value: bool) -> str:
    return "true" if value else "false"


def _form(fields: dict[str, Any]) -> dict[str, str]:
    # None means "not sent"; ttl=None is no expiry
    return {name: str(value) for name, value in fields.items() if value is not None}


@dataclass(frozen=True)
class EtcdClient:
    """
    etcd v2 API client with injected httpx client.

    Attributes:
        http: Pre-configured httpx.AsyncClient with base_url set to etcd.
        prefix: Versioned API root that keys/ and stats/ hang off.

    Example:
        async with httpx.AsyncClient(base_url="http://etcd:2379") as http:
            client = EtcdClient(http=http)
            await client.create("/locks/job-1", "worker-7", ttl=30)
            response = await client.get("/locks", recursive=True)
            for node in response.node.walk():
                print(node.key, node.value)

    Raises (every operation):
        EtcdError: etcd refused the request (subclass chosen by errorCode).
        TransportError: Connection failure, timeout, or unparseable reply.
        DecodeError: Reply did not have the expected shape.
    """

    http: httpx.AsyncClient
    prefix: str = "/v2"

    def _key_path(self, key: str) -> str:
        # Keys are arbitrary strings; "#", "?" and "%" must not reach the URL raw
        return f"{self.prefix}/keys/{quote(key.lstrip('/'), safe='/')}"

    async def _request(
        self,
        method: str,
        path: str,
        model: type[ModelT],
        *,
        params: dict[str, str] | None = None,
        data: dict[str, str] | None = None,
    ) -> ModelT:
        logger.debug(f"{method} {path} params={params} form={data}")
        try:
            response = await self.http.request(method, path, params=params, data=data)
        except httpx.TransportError as exc:
            logger.warning(f"{method} {path} failed: {exc!r}")
            raise TransportError(f"{method} {path} failed: {exc}") from exc

        return classify_response(response, model)

    async def _put(self, key: str, form: dict[str, Any]) -> Response:
        return await self._request("PUT", self._key_path(key), Response, data=_form(form))

    # -------------------------------------------------------------------------
    # Key Operations
    # -------------------------------------------------------------------------

    async def get(self, key: str, sort: bool = False, recursive: bool = False) -> Response:
        """
        Read a key or directory.

        Calls GET /v2/keys/{key}?sorted=&recursive=

        Args:
            key: Key path ("/" for the root directory).
            sort: Ask etcd to return children in ascending key order.
            recursive: Include the full subtree instead of direct children.

        Returns:
            Response with action "get". Directory nodes carry children.

        Raises:
            KeyNotFoundError: If the key does not exist.
        """
        params = {"sorted": _flag(sort), "recursive": _flag(recursive)}
        return await self._request("GET", self._key_path(key), Response, params=params)

    async def set(self, key: str, value: str, ttl: int | None = None) -> Response:
        """
        Set a key's value whether or not it exists.

        Calls PUT /v2/keys/{key} with value and optional ttl.

        Args:
            key: Key path. Missing parent directories are created.
            value: Value to store.
            ttl: Seconds until expiry, or None for no expiry.

        Returns:
            Response with action "set". prev_node holds the replaced state,
            if there was one.

        Raises:
            NotAFileError: If the key is a directory.
            NotDirectoryError: If a parent path is a plain key.
        """
        return await self._put(key, {"value": value, "ttl": ttl})

    async def create(self, key: str, value: str, ttl: int | None = None) -> Response:
        """
        Create a key that must not exist yet.

        Calls PUT /v2/keys/{key} with prevExist=false, so etcd applies the
        absence check atomically with the write.

        Returns:
            Response with action "create" and no prev_node.

        Raises:
            KeyAlreadyExistsError: If the key already exists.
        """
        return await self._put(key, {"value": value, "ttl": ttl, "prevExist": "false"})

    async def update(self, key: str, value: str, ttl: int | None = None) -> Response:
        """
        Replace the value of a key that must already exist.

        Calls PUT /v2/keys/{key} with prevExist=true. Passing ttl=None
        clears any existing TTL.

        Returns:
            Response with action "update" and prev_node set to the old state.

        Raises:
            KeyNotFoundError: If the key does not exist.
        """
        return await self._put(key, {"value": value, "ttl": ttl, "prevExist": "true"})

    async def delete(self, key: str, recursive: bool = False) -> Response:
        """
        Delete a key, or a directory and everything below it.

        Calls DELETE /v2/keys/{key}?dir=true&recursive=

        dir=true is always sent so that a directory without recursion is
        judged on its children (empty: deleted, non-empty: refused) rather
        than rejected as "not a file".

        Args:
            key: Key path.
            recursive: Required to remove a non-empty directory.

        Returns:
            Response with action "delete". prev_node holds the removed state.

        Raises:
            KeyNotFoundError: If the key does not exist.
            DirectoryNotEmptyError: If the key is a non-empty directory and
                recursive is False.
        """
        params = {"dir": "true", "recursive": _flag(recursive)}
        return await self._request("DELETE", self._key_path(key), Response, params=params)

    async def compare_and_swap(
        self,
        key: str,
        value: str,
        ttl: int | None = None,
        prev_value: str | None = None,
        prev_index: int | None = None,
    ) -> Response:
        """
        Set a key only if its current value and/or index match.

        Calls PUT /v2/keys/{key} with prevValue and/or prevIndex.

        Args:
            key: Key path.
            value: New value.
            ttl: Seconds until expiry, or None for no expiry.
            prev_value: Required current value.
            prev_index: Required current modified index.

        Returns:
            Response with action "compareAndSwap".

        Raises:
            ValueError: If neither prev_value nor prev_index is given.
            CompareFailedError: If a condition does not hold.
            KeyNotFoundError: If the key does not exist.
        """
        if prev_value is None and prev_index is None:
            raise ValueError("compare_and_swap requires prev_value or prev_index")
        return await self._put(
            key,
            {"value": value, "ttl": ttl, "prevValue": prev_value, "prevIndex": prev_index},
        )

    async def compare_and_delete(
        self,
        key: str,
        prev_value: str | None = None,
        prev_index: int | None = None,
    ) -> Response:
        """
        Delete a key only if its current value and/or index match.

        Calls DELETE /v2/keys/{key}?prevValue=&prevIndex=

        Returns:
            Response with action "compareAndDelete".

        Raises:
            ValueError: If neither prev_value nor prev_index is given.
            CompareFailedError: If a condition does not hold.
            KeyNotFoundError: If the key does not exist.
        """
        if prev_value is None and prev_index is None:
            raise ValueError("compare_and_delete requires prev_value or prev_index")
        params = _form({"prevValue": prev_value, "prevIndex": prev_index})
        return await self._request("DELETE", self._key_path(key), Response, params=params)

    async def create_in_order(
        self, key: str, value: str, ttl: int | None = None
    ) -> Response:
        """
        Create a child of a directory under a key chosen by etcd.

        Calls POST /v2/keys/{key}. etcd names the child after the current
        cluster index, so children created this way sort by creation order.

        Returns:
            Response with action "create". node.key is the generated key.
        """
        data = _form({"value": value, "ttl": ttl})
        return await self._request("POST", self._key_path(key), Response, data=data)

    # -------------------------------------------------------------------------
    # Directory Operations
    # -------------------------------------------------------------------------

    async def create_dir(self, key: str, ttl: int | None = None) -> Response:
        """
        Create a directory that must not exist yet.

        Calls PUT /v2/keys/{key} with dir=true and prevExist=false.

        Returns:
            Response with action "create"; node.dir is True and node.value is None.

        Raises:
            KeyAlreadyExistsError: If the key already exists.
        """
        return await self._put(key, {"dir": "true", "ttl": ttl, "prevExist": "false"})

    async def set_dir(self, key: str, ttl: int | None = None) -> Response:
        """
        Create a directory, or refresh the TTL of an existing one.

        Calls PUT /v2/keys/{key} with dir=true.

        Raises:
            NotAFileError: If the key exists as a plain key.
        """
        return await self._put(key, {"dir": "true", "ttl": ttl})

    async def update_dir(self, key: str, ttl: int | None = None) -> Response:
        """
        Change the TTL of a directory that must already exist.

        Calls PUT /v2/keys/{key} with dir=true and prevExist=true.
        Passing ttl=None removes the expiry.

        Raises:
            KeyNotFoundError: If the directory does not exist.
        """
        return await self._put(key, {"dir": "true", "ttl": ttl, "prevExist": "true"})

    async def delete_dir(self, key: str) -> Response:
        """
        Delete an empty directory.

        Calls DELETE /v2/keys/{key}?dir=true

        Returns:
            Response with action "delete".

        Raises:
            KeyNotFoundError: If the directory does not exist.
            DirectoryNotEmptyError: If the directory has children.

        Note:
            etcd accepts dir=true for plain keys too and deletes them.
            Restricting this call to directories would need a second
            round trip, which this client does not make.
        """
        return await self._request(
            "DELETE", self._key_path(key), Response, params={"dir": "true"}
        )

    # -------------------------------------------------------------------------
    # Cluster Introspection
    # -------------------------------------------------------------------------

    async def leader_stats(self) -> LeaderStats:
        """
        Get follower health as seen by the cluster leader.

        Calls GET /v2/stats/leader. Only the leader answers successfully;
        followers reply with an error that surfaces as TransportError.
        """
        return await self._request("GET", f"{self.prefix}/stats/leader", LeaderStats)

    async def self_stats(self) -> SelfStats:
        """
        Get statistics for the member this client is connected to.

        Calls GET /v2/stats/self.
        """
        return await self._request("GET", f"{self.prefix}/stats/self", SelfStats)

    async def store_stats(self) -> StoreStats:
        """
        Get key store operation counters for the connected member.

        Calls GET /v2/stats/store.
        """
        return await self._request("GET", f"{self.prefix}/stats/store", StoreStats)

    async def version(self) -> VersionInfo:
        """
        Get server and cluster versions.

        Calls GET /version, which lives outside the versioned prefix.
        """
        return await self._request("GET", "/version", VersionInfo)
