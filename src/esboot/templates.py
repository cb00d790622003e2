"""
Index template publishing.

Pushes every bundled index template to the cluster once it is ready. Shard
counts are filled in from the environment before upload; each template is
upserted independently so one bad document does not hold back the rest.
"""

import logging
from pathlib import Path

import httpx

from esboot.core.constants import (
    TEMPLATE_GLOB_DEFAULT,
    TEMPLATE_PRIMARY_SHARDS_PLACEHOLDER,
    TEMPLATE_REPLICA_SHARDS_PLACEHOLDER,
)
from esboot.core.errors import PublishError, TemplatesNotFound
from esboot.core.models import IndexTemplateDoc, PublishReport, TemplateResult

logger = logging.getLogger(__name__)


def discover_templates(template_dir: Path, pattern: str = TEMPLATE_GLOB_DEFAULT) -> list[IndexTemplateDoc]:
    """Find template documents. An empty match is a configuration error."""
    paths = sorted(p for p in Path(template_dir).glob(pattern) if p.is_file())
    if not paths:
        raise TemplatesNotFound(f"No index templates matching '{pattern}' in {template_dir}")
    return [IndexTemplateDoc(path=p) for p in paths]


def render_template(text: str, primary_shards: int, replica_shards: int) -> str:
    """Replace every shard-count placeholder."""
    return (
        text.replace(TEMPLATE_REPLICA_SHARDS_PLACEHOLDER, str(replica_shards))
        .replace(TEMPLATE_PRIMARY_SHARDS_PLACEHOLDER, str(primary_shards))
    )


class TemplatePublisher:
    """Upserts index templates through the legacy `_template` API."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        primary_shards: int,
        replica_shards: int,
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._primary_shards = primary_shards
        self._replica_shards = replica_shards

    def template_url(self, name: str) -> str:
        return f"{self._base_url}/_template/{name}"

    def stage(self, doc: IndexTemplateDoc, staging_dir: Path | None = None) -> Path:
        """
        Substitute shard counts and write the result.

        Written in place unless staging_dir is given, in which case the source
        document is left untouched. Re-running is a no-op once substituted.

        Returns:
            Path of the rendered document
        """
        rendered = render_template(
            doc.path.read_text(encoding="utf-8"),
            self._primary_shards,
            self._replica_shards,
        )
        target = doc.path
        if staging_dir is not None:
            staging_dir.mkdir(parents=True, exist_ok=True)
            target = staging_dir / doc.path.name
        target.write_text(rendered, encoding="utf-8")
        return target

    async def exists(self, name: str) -> bool:
        """Check whether the template is already registered."""
        try:
            response = await self._client.head(self.template_url(name))
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"Could not check index template '{name}': {e}")
            return False
        return response.status_code == 200

    async def upload(self, name: str, body: bytes) -> int:
        """
        PUT the template body.

        Returns:
            The response status code

        Raises:
            PublishError: on transport failure or a non-2xx answer
        """
        try:
            response = await self._client.put(
                self.template_url(name),
                content=body,
                headers={"Content-Type": "application/json"},
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise PublishError(name, str(e)) from e
        if not response.is_success:
            raise PublishError(name, response.text, status_code=response.status_code)
        return response.status_code

    async def publish(self, doc: IndexTemplateDoc, staging_dir: Path | None = None) -> TemplateResult:
        """Render, check and upload a single template."""
        result = TemplateResult(name=doc.name, path=doc.path)
        try:
            rendered = self.stage(doc, staging_dir)
        except (OSError, UnicodeError) as e:
            result.error = f"Could not render {doc.path}: {e}"
            logger.error(result.error)
            return result

        result.existed = await self.exists(doc.name)
        if result.existed:
            logger.info(f"Index template '{doc.name}' found in the cluster, overriding it")
        else:
            logger.info(f"Create index template '{doc.name}'")

        try:
            result.status_code = await self.upload(doc.name, rendered.read_bytes())
        except PublishError as e:
            result.status_code = e.status_code
            result.error = e.reason
            logger.error(str(e))
        return result

    async def publish_templates(
        self,
        template_dir: Path,
        pattern: str = TEMPLATE_GLOB_DEFAULT,
        staging_dir: Path | None = None,
    ) -> PublishReport:
        """
        Publish every template in template_dir, one after the other.

        Raises:
            TemplatesNotFound: nothing matches pattern
        """
        docs = discover_templates(template_dir, pattern)
        logger.info("Adding index templates")
        report = PublishReport()
        for doc in docs:
            report.results.append(await self.publish(doc, staging_dir))
        logger.info(
            f"Finished adding index templates "
            f"({len(report.succeeded)} succeeded, {len(report.failed)} failed)"
        )
        return report
