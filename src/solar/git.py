"""Commit the updated dataset file and push it."""

import asyncio
import logging
from datetime import datetime
from pathlib import Path

from .errors import PersistError

logger = logging.getLogger(__name__)


class GitCommitter:
    """Stage, commit and push one file in a git working tree."""

    def __init__(self, repo_dir: Path | None = None, push: bool = True):
        self.repo_dir = repo_dir
        self.push = push

    async def _git(self, *args: str, check: bool = True) -> tuple[int, str]:
        proc = await asyncio.create_subprocess_exec(
            "git",
            *args,
            cwd=self.repo_dir,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await proc.communicate()
        if check and proc.returncode != 0:
            raise PersistError(
                f"git {args[0]} failed ({proc.returncode}): {stderr.decode(errors='replace').strip()}"
            )
        return proc.returncode, stdout.decode(errors="replace")

    async def commit(self, path: Path, when: datetime | None = None) -> bool:
        """Commit and push `path`. Returns False when the file has no staged changes."""
        when = when or datetime.now()
        await self._git("add", str(path))
        # exits 0 when the index matches HEAD for this path
        unchanged, _ = await self._git("diff", "--cached", "--quiet", "--", str(path), check=False)
        if unchanged == 0:
            logger.info(f"No changes to {path}, nothing to commit")
            return False
        await self._git("commit", "-n", "-m", f"Update data at {when.isoformat(timespec='seconds')}")
        if self.push:
            await self._git("push")
        logger.info(f"Committed {path}")
        return True
