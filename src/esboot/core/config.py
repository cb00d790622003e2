"""
esboot Configuration

Loads the wrapper configuration from environment variables once, into a
frozen snapshot that is passed explicitly to every component.
"""

from functools import lru_cache
from pathlib import Path

import httpx
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from esboot.core.constants import (
    PROMETHEUS_USER_DEFAULT,
    READINESS_RETRY_COUNT_DEFAULT,
    READINESS_RETRY_INTERVAL_SECS_DEFAULT,
    ROLE_MAPPING_RELATIVE_PATH,
    SECRET_CA_FILENAME,
    SECRET_CERT_FILENAME,
    SECRET_KEY_FILENAME,
    TEMPLATE_PRIMARY_SHARDS_DEFAULT,
    TEMPLATE_REPLICA_SHARDS_DEFAULT,
)
from esboot.transport import TLSCredentials


class Settings(BaseSettings):
    """Wrapper settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_ignore_empty=True,
        frozen=True,
    )

    # Elasticsearch REST endpoint
    es_rest_baseurl: str = "https://localhost:9200"

    # Readiness polling
    retry_count: int = Field(default=READINESS_RETRY_COUNT_DEFAULT, ge=1)  # how many times
    retry_interval: int = Field(default=READINESS_RETRY_INTERVAL_SECS_DEFAULT, ge=0)  # how often (in sec)
    wait_for_status: str = ""  # green/yellow/red, empty skips the cluster health wait

    # Index templates
    primary_shards: int = Field(default=TEMPLATE_PRIMARY_SHARDS_DEFAULT, ge=1)
    replica_shards: int = Field(default=TEMPLATE_REPLICA_SHARDS_DEFAULT, ge=0)
    template_dir: str = ""  # defaults to $ES_HOME/index_templates

    # Memory
    instance_ram: str = ""  # validated by the heap calculator, not here
    es_java_opts: str = ""
    heap_dump_location: str = "/elasticsearch/persistent/hdump.prof"

    # Paths
    es_conf: str = "/etc/elasticsearch"
    es_home: str = "/usr/share/elasticsearch"
    home: str = "/root"
    data_root: str = "/elasticsearch"
    # The deployment mounts the secrets here, not necessarily under $ES_CONF
    secret_dir: str = "/etc/elasticsearch/secret"
    # The deployment mounts the configmap here
    mounted_config_dir: str = "/usr/share/java/elasticsearch/config"

    # Cluster
    cluster_name: str = "elasticsearch"
    prometheus_user: str = PROMETHEUS_USER_DEFAULT
    seed_acl_command: str = "es_seed_acl"
    kubernetes_auth_trykubeconfig: str = "false"

    debug: bool = False

    @field_validator("es_rest_baseurl")
    @classmethod
    def _check_base_url(cls, value: str) -> str:
        try:
            url = httpx.URL(value)
        except httpx.InvalidURL as e:
            raise ValueError(f"invalid ES_REST_BASEURL {value!r}: {e}") from e
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError(f"ES_REST_BASEURL must be an http(s) URL with a host, got {value!r}")
        return value.rstrip("/")

    @property
    def max_time_seconds(self) -> int:
        """Total retry budget, also used as the per-request timeout."""
        return self.retry_count * self.retry_interval

    @property
    def credentials(self) -> TLSCredentials:
        secret_dir = Path(self.secret_dir)
        return TLSCredentials(
            ca=secret_dir / SECRET_CA_FILENAME,
            cert=secret_dir / SECRET_CERT_FILENAME,
            key=secret_dir / SECRET_KEY_FILENAME,
        )

    @property
    def template_path(self) -> Path:
        if self.template_dir:
            return Path(self.template_dir)
        return Path(self.es_home) / "index_templates"

    @property
    def role_mapping_path(self) -> Path:
        return Path(self.home) / ROLE_MAPPING_RELATIVE_PATH

    @property
    def cluster_data_path(self) -> Path:
        return Path(self.data_root) / self.cluster_name

    @property
    def elasticsearch_bin(self) -> Path:
        return Path(self.es_home) / "bin" / "elasticsearch"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
