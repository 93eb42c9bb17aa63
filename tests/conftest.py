"""
Shared fixtures: an in-memory etcd v2 server exposed as an httpx transport.

FakeEtcd implements enough of the v2 keys and stats API to run full
client lifecycles without a real cluster:
- PUT with value/dir/ttl/prevExist/prevValue/prevIndex
- POST (in-order keys), GET with recursive/sorted, DELETE with dir/recursive
- Error envelopes with the real status codes and errorCodes
- /v2/stats/{leader,self,store} and /version

Children are listed in insertion order unless sorted=true, like etcd's
unordered listing.
"""

import json
from urllib.parse import parse_qs

import httpx
import pytest

KEYS_PREFIX = "/v2/keys"
EXPIRATION = "2026-10-19T12:00:00.000000000Z"

LEADER_STATS = {
    "leader": "924e2e83e93f2560",
    "followers": {
        "6e3bd23ae5f1eae0": {
            "counts": {"fail": 0, "success": 745},
            "latency": {
                "average": 0.017,
                "current": 0.019,
                "maximum": 1.02,
                "minimum": 0.012,
                "standardDeviation": 0.048,
            },
        },
        "a8266ecf031671f3": {
            "counts": {"fail": 2, "success": 735},
            "latency": {
                "average": 0.012,
                "current": 0.010,
                "maximum": 0.45,
                "minimum": 0.009,
                "standardDeviation": 0.021,
            },
        },
    },
}

SELF_STATS = {
    "id": "924e2e83e93f2560",
    "name": "infra1",
    "leaderInfo": {
        "leader": "924e2e83e93f2560",
        "startTime": "2026-10-19T11:00:00.000000000Z",
        "uptime": "1h0m0s",
    },
    "recvAppendRequestCnt": 0,
    "sendAppendRequestCnt": 1480,
    "sendBandwidthRate": 1041.5,
    "sendPkgRate": 9.8,
    "state": "StateLeader",
    "startTime": "2026-10-19T10:59:58.000000000Z",
}

STORE_STATS = {
    "getsSuccess": 12,
    "getsFail": 3,
    "setsSuccess": 7,
    "setsFail": 0,
    "deleteSuccess": 2,
    "deleteFail": 1,
    "updateSuccess": 1,
    "updateFail": 1,
    "createSuccess": 4,
    "createFail": 1,
    "compareAndSwapSuccess": 0,
    "compareAndSwapFail": 0,
    "compareAndDeleteSuccess": 0,
    "compareAndDeleteFail": 0,
    "expireCount": 0,
    "watchers": 0,
}


class EtcdRefusal(Exception):
    """Internal signal carrying an etcd error reply."""

    def __init__(self, status_code: int, error_code: int, message: str, cause: str):
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        self.cause = cause


def _parent(key: str) -> str:
    return key.rsplit("/", 1)[0] or "/"


class FakeEtcd(httpx.AsyncBaseTransport):
    """In-memory etcd v2 server."""

    def __init__(self) -> None:
        self.index = 1
        # key -> {"dir", "value", "ttl", "created", "modified"}
        self.nodes: dict[str, dict] = {}

    # -- helpers ---------------------------------------------------------------

    def _exists(self, key: str) -> bool:
        return key == "/" or key in self.nodes

    def _is_dir(self, key: str) -> bool:
        return key == "/" or self.nodes[key]["dir"]

    def _children(self, key: str) -> list[str]:
        return [k for k in self.nodes if _parent(k) == key]

    def _node_json(self, key: str, listing: bool, recursive: bool, sort: bool) -> dict:
        if key == "/":
            out: dict = {"dir": True}
        else:
            entry = self.nodes[key]
            out = {
                "key": key,
                "createdIndex": entry["created"],
                "modifiedIndex": entry["modified"],
            }
            if entry["dir"]:
                out["dir"] = True
            else:
                out["value"] = entry["value"]
            if entry["ttl"] is not None:
                out["ttl"] = entry["ttl"]
                out["expiration"] = EXPIRATION

        if listing and self._is_dir(key):
            children = self._children(key)
            if sort:
                children = sorted(children)
            if children:
                out["nodes"] = [
                    self._node_json(child, recursive, recursive, sort)
                    for child in children
                ]
        return out

    def _not_found(self, key: str) -> EtcdRefusal:
        return EtcdRefusal(404, 100, "Key not found", key)

    def _check_compare(self, key: str, prev_value: str | None, prev_index: str | None) -> None:
        entry = self.nodes[key]
        if prev_value is not None and entry["value"] != prev_value:
            raise EtcdRefusal(412, 101, "Compare failed", f"[{prev_value} != {entry['value']}]")
        if prev_index is not None and int(prev_index) != entry["modified"]:
            raise EtcdRefusal(412, 101, "Compare failed", f"[{prev_index} != {entry['modified']}]")

    def _ensure_parents(self, key: str) -> None:
        missing = []
        parent = _parent(key)
        while parent != "/":
            if parent in self.nodes:
                if not self.nodes[parent]["dir"]:
                    raise EtcdRefusal(403, 104, "Not a directory", parent)
                break
            missing.append(parent)
            parent = _parent(parent)
        for path in reversed(missing):
            self.nodes[path] = {
                "dir": True,
                "value": None,
                "ttl": None,
                "created": self.index,
                "modified": self.index,
            }

    # -- verbs -----------------------------------------------------------------

    def _put(self, key: str, form: dict[str, str]) -> tuple[int, dict]:
        if key == "/":
            raise EtcdRefusal(403, 107, "Root is read only", "/")

        is_dir = form.get("dir") == "true"
        ttl = int(form["ttl"]) if form.get("ttl") else None
        prev_exist = form.get("prevExist")
        prev_value = form.get("prevValue")
        prev_index = form.get("prevIndex")
        exists = key in self.nodes

        if prev_exist == "false" and exists:
            raise EtcdRefusal(412, 105, "Key already exists", key)
        if prev_exist == "true" and not exists:
            raise self._not_found(key)

        if prev_value is not None or prev_index is not None:
            if not exists:
                raise self._not_found(key)
            self._check_compare(key, prev_value, prev_index)
            action = "compareAndSwap"
        elif prev_exist == "false":
            action = "create"
        elif prev_exist == "true":
            action = "update"
        else:
            action = "set"

        if exists and self.nodes[key]["dir"] and not is_dir:
            raise EtcdRefusal(403, 102, "Not a file", key)
        if exists and not self.nodes[key]["dir"] and is_dir:
            raise EtcdRefusal(403, 104, "Not a directory", key)

        prior = self._node_json(key, False, False, False) if exists else None
        self._ensure_parents(key)
        self.index += 1
        self.nodes[key] = {
            "dir": is_dir,
            "value": None if is_dir else form.get("value", ""),
            "ttl": ttl,
            "created": self.nodes[key]["created"] if exists else self.index,
            "modified": self.index,
        }

        body = {"action": action, "node": self._node_json(key, False, False, False)}
        if prior is not None:
            body["prevNode"] = prior
        return (200 if exists else 201), body

    def _post(self, key: str, form: dict[str, str]) -> tuple[int, dict]:
        if key != "/" and key in self.nodes and not self.nodes[key]["dir"]:
            raise EtcdRefusal(403, 104, "Not a directory", key)
        self.index += 1
        base = "" if key == "/" else key
        child = f"{base}/{self.index:020d}"
        self._ensure_parents(child)
        ttl = int(form["ttl"]) if form.get("ttl") else None
        self.nodes[child] = {
            "dir": False,
            "value": form.get("value", ""),
            "ttl": ttl,
            "created": self.index,
            "modified": self.index,
        }
        return 201, {"action": "create", "node": self._node_json(child, False, False, False)}

    def _get(self, key: str, params: dict[str, str]) -> tuple[int, dict]:
        if not self._exists(key):
            raise self._not_found(key)
        recursive = params.get("recursive") == "true"
        sort = params.get("sorted") == "true"
        return 200, {"action": "get", "node": self._node_json(key, True, recursive, sort)}

    def _delete(self, key: str, params: dict[str, str]) -> tuple[int, dict]:
        if key == "/":
            raise EtcdRefusal(403, 107, "Root is read only", "/")
        if key not in self.nodes:
            raise self._not_found(key)

        prev_value = params.get("prevValue")
        prev_index = params.get("prevIndex")
        entry = self.nodes[key]
        recursive = params.get("recursive") == "true"
        dir_flag = params.get("dir") == "true" or recursive

        if prev_value is not None or prev_index is not None:
            if entry["dir"]:
                raise EtcdRefusal(403, 102, "Not a file", key)
            self._check_compare(key, prev_value, prev_index)
            action = "compareAndDelete"
        else:
            action = "delete"

        if entry["dir"]:
            if not dir_flag:
                raise EtcdRefusal(403, 102, "Not a file", key)
            if self._children(key) and not recursive:
                raise EtcdRefusal(403, 108, "Directory not empty", key)

        prior = self._node_json(key, False, False, False)
        self.index += 1
        for path in [k for k in self.nodes if k == key or k.startswith(key + "/")]:
            del self.nodes[path]

        node = {"key": key, "createdIndex": entry["created"], "modifiedIndex": self.index}
        if entry["dir"]:
            node["dir"] = True
        return 200, {"action": action, "node": node, "prevNode": prior}

    # -- transport -------------------------------------------------------------

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        """Dispatch a request to the in-memory store."""
        path = request.url.path
        params = dict(request.url.params)
        body = (await request.aread()).decode()
        form = {name: values[0] for name, values in parse_qs(body, keep_blank_values=True).items()}

        if path == "/version":
            return self._reply(request, 200, {"etcdserver": "2.3.8", "etcdcluster": "2.3.0"})
        if path == "/v2/stats/leader":
            return self._reply(request, 200, LEADER_STATS)
        if path == "/v2/stats/self":
            return self._reply(request, 200, SELF_STATS)
        if path == "/v2/stats/store":
            return self._reply(request, 200, STORE_STATS)
        if not path.startswith(KEYS_PREFIX):
            return httpx.Response(404, text="404 page not found\n", request=request)

        key = "/" + path[len(KEYS_PREFIX):].strip("/")
        handlers = {
            "PUT": lambda: self._put(key, form),
            "POST": lambda: self._post(key, form),
            "GET": lambda: self._get(key, params),
            "DELETE": lambda: self._delete(key, params),
        }
        try:
            status, payload = handlers[request.method]()
        except EtcdRefusal as refusal:
            status = refusal.status_code
            payload = {
                "errorCode": refusal.error_code,
                "message": refusal.message,
                "cause": refusal.cause,
                "index": self.index,
            }
        return self._reply(request, status, payload)

    def _reply(self, request: httpx.Request, status: int, payload: dict) -> httpx.Response:
        return httpx.Response(
            status_code=status,
            content=json.dumps(payload).encode(),
            headers={"Content-Type": "application/json", "X-Etcd-Index": str(self.index)},
            request=request,
        )


@pytest.fixture
def fake_etcd():
    """Fresh in-memory etcd server."""
    return FakeEtcd()
