"""
Startup orchestration.

The main flow validates memory, renders the role mapping, spawns the
background unit, copies the mounted configuration and finally replaces
itself with the Elasticsearch server. The background unit waits for the
node, seeds the ACLs and publishes the index templates; its failures only
show in its own logs and exit status.
"""

import asyncio
import logging
import os
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Callable, Mapping, NoReturn

import httpx

from esboot.core.config import Settings
from esboot.core.constants import SEARCH_GUARD_LICENSE_DISPLAY_OPT
from esboot.core.errors import ConfigError, ReadinessTimeoutError, TemplatesNotFound
from esboot.memory import compute_heap_flags, read_cgroup_limit
from esboot.readiness import ReadinessPoller, SleepFn, wait_for_cluster_health
from esboot.rolemapping import write_role_mapping
from esboot.seed import seed_acl
from esboot.templates import TemplatePublisher
from esboot.transport import make_client

logger = logging.getLogger(__name__)


# =============================================================================
# Background Unit
# =============================================================================


async def poll_then_publish(
    settings: Settings,
    client: httpx.AsyncClient | None = None,
    sleep: SleepFn = asyncio.sleep,
) -> int:
    """
    Wait for Elasticsearch, then push the index templates.

    Never raises for readiness or publish failures; they are logged and
    turned into the exit status of the background unit.

    Returns:
        0 if every template was published, 1 otherwise
    """
    owns_client = client is None
    if client is None:
        try:
            client = make_client(settings.credentials, timeout=settings.max_time_seconds or None)
        except OSError as e:  # covers ssl.SSLError and missing secret files
            logger.error(f"Unable to load the admin TLS credentials from {settings.secret_dir}: {e}")
            return 1

    try:
        poller = ReadinessPoller(
            client,
            settings.es_rest_baseurl,
            retry_count=settings.retry_count,
            retry_interval=settings.retry_interval,
            sleep=sleep,
        )
        try:
            await poller.wait_until_ready()
        except ReadinessTimeoutError as e:
            logger.error(str(e))
            return 1

        await seed_acl(settings.seed_acl_command)

        if settings.wait_for_status:
            await wait_for_cluster_health(
                client,
                settings.es_rest_baseurl,
                settings.wait_for_status,
                settings.max_time_seconds,
            )

        publisher = TemplatePublisher(
            client,
            settings.es_rest_baseurl,
            primary_shards=settings.primary_shards,
            replica_shards=settings.replica_shards,
        )
        try:
            report = await publisher.publish_templates(settings.template_path)
        except TemplatesNotFound as e:
            logger.error(str(e))
            return 1

        for failed in report.failed:
            logger.error(f"Index template '{failed.name}' was not published: {failed.error}")
        return 0 if report.ok else 1
    finally:
        if owns_client:
            await client.aclose()


def spawn_background(settings: Settings) -> subprocess.Popen:
    """
    Start the background unit as a detached child process.

    It has to be a separate process: the parent is about to exec the server,
    which would take any thread or task down with it.
    """
    argv = [sys.executable, "-m", "esboot", "templates"]
    logger.debug(f"Spawning background unit: {' '.join(argv)}")
    return subprocess.Popen(argv, start_new_session=True)


# =============================================================================
# Main Flow
# =============================================================================


class Launcher:
    """Prepares the node and execs Elasticsearch."""

    def __init__(
        self,
        settings: Settings,
        spawn: Callable[[Settings], object] = spawn_background,
        execve: Callable[[str, list[str], Mapping[str, str]], object] = os.execve,
        cgroup_reader: Callable[[], int | None] = read_cgroup_limit,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._settings = settings
        self._spawn = spawn
        self._execve = execve
        self._cgroup_reader = cgroup_reader
        self._environ = dict(os.environ if environ is None else environ)

    @property
    def settings(self) -> Settings:
        return self._settings

    def heap_java_opts(self) -> str:
        """ES_JAVA_OPTS with the heap flags appended. Raises ConfigError."""
        flags = compute_heap_flags(
            self._settings.instance_ram,
            self._cgroup_reader(),
            java_opts=self._settings.es_java_opts,
        )
        return flags.java_opts

    def copy_mounted_config(self) -> list[Path]:
        """Copy the mounted configmap files into ES_CONF."""
        source = Path(self._settings.mounted_config_dir)
        target = Path(self._settings.es_conf)
        if not source.is_dir():
            raise ConfigError(f"Mounted configuration directory {source} does not exist")
        target.mkdir(parents=True, exist_ok=True)

        copied = []
        for path in sorted(source.iterdir()):
            if path.is_file():
                copied.append(Path(shutil.copy(path, target)))
        logger.info(f"Copied {len(copied)} configuration files from {source} to {target}")
        return copied

    def finalize_java_opts(self, java_opts: str) -> str:
        """Append the heap dump location and the license display switch."""
        logger.info(f"Setting heap dump location {self._settings.heap_dump_location}")
        opts = (
            f"{java_opts} -XX:HeapDumpPath={self._settings.heap_dump_location} "
            f"{SEARCH_GUARD_LICENSE_DISPLAY_OPT}"
        ).lstrip()
        logger.info(f"ES_JAVA_OPTS: '{opts}'")
        return opts

    def build_command(self) -> list[str]:
        return [str(self._settings.elasticsearch_bin), "-E", f"path.conf={self._settings.es_conf}"]

    def build_environment(self, java_opts: str) -> dict[str, str]:
        env = dict(self._environ)
        env["ES_JAVA_OPTS"] = java_opts
        env["KUBERNETES_AUTH_TRYKUBECONFIG"] = self._settings.kubernetes_auth_trykubeconfig
        return env

    def prepare(self) -> tuple[list[str], dict[str, str]]:
        """
        Run every step up to, but not including, the exec.

        Returns:
            The server argv and environment

        Raises:
            ConfigError: memory errors surface before anything is spawned
                or written; a missing mounted config directory after
        """
        java_opts = self.heap_java_opts()

        self._settings.cluster_data_path.mkdir(parents=True, exist_ok=True)
        write_role_mapping(self._settings.role_mapping_path, self._settings.prometheus_user)

        self._spawn(self._settings)

        self.copy_mounted_config()
        java_opts = self.finalize_java_opts(java_opts)
        return self.build_command(), self.build_environment(java_opts)

    def run(self) -> NoReturn:
        """Prepare the node and replace this process with Elasticsearch."""
        logger.info("Begin Elasticsearch startup script")
        argv, env = self.prepare()
        logger.info(f"Starting {' '.join(argv)}")
        self._execve(argv[0], argv, env)
        # only reached when execve is stubbed
        raise SystemExit(0)
