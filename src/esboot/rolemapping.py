"""Search Guard role mapping for the Prometheus scraper."""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def render_role_mapping(prometheus_user: str) -> str:
    return (
        "sg_role_prometheus:\n"
        "  users:\n"
        f'    - "{prometheus_user}"\n'
    )


def write_role_mapping(path: Path, prometheus_user: str) -> None:
    """Append the sg_role_prometheus mapping to the roles mapping file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as f:
        f.write(render_role_mapping(prometheus_user))
    logger.info(f"Mapped {prometheus_user} to sg_role_prometheus in {path}")
