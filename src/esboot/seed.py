"""Search Guard ACL seeding once the node is up."""

import asyncio
import logging
import shlex

logger = logging.getLogger(__name__)


async def seed_acl(command: str) -> bool:
    """
    Run the ACL seeding helper.

    A missing helper or a non-zero exit is logged and reported as False;
    template publishing goes ahead either way.
    """
    argv = shlex.split(command)
    if not argv:
        logger.debug("ACL seeding disabled")
        return True

    logger.info(f"Seeding Search Guard ACLs with {argv[0]}")
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
    except OSError as e:
        logger.warning(f"Could not run {argv[0]}: {e}")
        return False

    output, _ = await proc.communicate()
    if proc.returncode != 0:
        logger.warning(f"{argv[0]} exited with {proc.returncode}: {output.decode(errors='replace').strip()}")
        return False
    logger.debug(output.decode(errors="replace").strip())
    return True
