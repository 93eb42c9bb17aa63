"""Environment-based configuration for the etcd client."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """etcd client configuration.

    All settings can be overridden via environment variables with
    ETCD_ prefix. For example:
        ETCD_ENDPOINT=http://etcd-0:2379
        ETCD_TIMEOUT_SECONDS=2.5
    """

    # Member to talk to
    endpoint: str = "http://127.0.0.1:2379"

    # Versioned root for keys/ and stats/
    api_prefix: str = "/v2"

    # Applied to the httpx client created by the factory
    timeout_seconds: float = 10.0

    model_config = {"env_prefix": "ETCD_"}
