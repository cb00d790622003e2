"""
Shared test fixtures for the esboot test suite.

Provides fixtures for:
- Settings built against a temporary filesystem layout
- A fake Elasticsearch behind httpx.MockTransport
- A recording sleep to keep polling tests instant
- Index template factories
"""

import json
from pathlib import Path
from typing import AsyncGenerator, Callable

import httpx
import pytest
import pytest_asyncio

from esboot.core.config import Settings, get_settings
from esboot.core.constants import MEMORY_GIB_BYTES


# =============================================================================
# Settings
# =============================================================================


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are cached per process; tests need a fresh read."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def make_settings(tmp_path: Path) -> Callable[..., Settings]:
    """Factory for Settings rooted in tmp_path."""

    def _make_settings(**overrides) -> Settings:
        values = {
            "es_rest_baseurl": "https://es.test:9200",
            "retry_count": 3,
            "retry_interval": 1,
            "instance_ram": "512Mi",
            "es_java_opts": "",
            "es_conf": str(tmp_path / "conf"),
            "es_home": str(tmp_path / "es"),
            "home": str(tmp_path / "home"),
            "data_root": str(tmp_path / "data"),
            "secret_dir": str(tmp_path / "secret"),
            "mounted_config_dir": str(tmp_path / "mounted"),
            "heap_dump_location": str(tmp_path / "data" / "hdump.prof"),
            "cluster_name": "logging-es",
            "seed_acl_command": "",
            "wait_for_status": "",
            "debug": False,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make_settings


@pytest.fixture
def two_gib() -> int:
    return 2 * MEMORY_GIB_BYTES


# =============================================================================
# Fake Elasticsearch
# =============================================================================


class FakeElasticsearch:
    """
    Minimal stand-in for the Elasticsearch REST API.

    - HEAD /                answers `not_ready_status` for the first
                            `not_ready_probes` calls, then 200
    - HEAD /_template/<n>   200 if registered, 404 otherwise
    - PUT  /_template/<n>   stores the JSON body; names in `put_errors`
                            raise a connection error, names in
                            `put_status` answer with that status
    - GET  /_cluster/health answers `health`
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.not_ready_probes = 0
        self.not_ready_status = 503
        self.refuse_connections = False
        self.templates: dict[str, dict] = {}
        self.put_errors: set[str] = set()
        self.put_status: dict[str, int] = {}
        self.health = {"status": "green", "timed_out": False}
        self._probes = 0

    @property
    def probes(self) -> int:
        return self._probes

    def requests_for(self, method: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/" and request.method == "HEAD":
            self._probes += 1
            if self.refuse_connections:
                raise httpx.ConnectError("Connection refused", request=request)
            if self._probes <= self.not_ready_probes:
                return httpx.Response(self.not_ready_status, headers={"x-probe": str(self._probes)})
            return httpx.Response(200)

        if path.startswith("/_template/"):
            name = path.rsplit("/", 1)[-1]
            if request.method == "HEAD":
                return httpx.Response(200 if name in self.templates else 404)
            if request.method == "PUT":
                if name in self.put_errors:
                    raise httpx.ConnectError("Connection reset by peer", request=request)
                if name in self.put_status:
                    return httpx.Response(self.put_status[name], json={"error": "bad template"})
                self.templates[name] = json.loads(request.content)
                return httpx.Response(200, json={"acknowledged": True})

        if path == "/_cluster/health" and request.method == "GET":
            return httpx.Response(200, json=self.health)

        return httpx.Response(404)


@pytest.fixture
def fake_es() -> FakeElasticsearch:
    return FakeElasticsearch()


@pytest_asyncio.fixture
async def es_client(fake_es: FakeElasticsearch) -> AsyncGenerator[httpx.AsyncClient, None]:
    """AsyncClient wired to the fake Elasticsearch."""
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_es.handler)) as client:
        yield client


# =============================================================================
# Sleep
# =============================================================================


class RecordingSleep:
    """Async sleep replacement that only records the requested delays."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)

    @property
    def total(self) -> float:
        return sum(self.calls)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


# =============================================================================
# Templates
# =============================================================================

TEMPLATE_BODY = """{
  "template": "%(pattern)s",
  "settings": {
    "index.number_of_shards": $PRIMARY_SHARDS,
    "index.number_of_replicas": $REPLICA_SHARDS
  },
  "aliases": {"%(name)s-primaries-$PRIMARY_SHARDS": {}}
}
"""


@pytest.fixture
def make_template_dir(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing template documents with shard placeholders."""

    def _make_template_dir(*names: str, directory: Path | None = None) -> Path:
        directory = directory or tmp_path / "index_templates"
        directory.mkdir(parents=True, exist_ok=True)
        for name in names:
            (directory / f"{name}.json").write_text(
                TEMPLATE_BODY % {"name": name, "pattern": f"{name}.*"},
                encoding="utf-8",
            )
        return directory

    return _make_template_dir
