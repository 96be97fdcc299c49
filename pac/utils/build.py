"""Run a package's build command inside its directory."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from pac.errors import BuildError

logger = logging.getLogger(__name__)


def run_build(command: str, working_dir: str | Path) -> str:
    """Run *command* through the shell in *working_dir*.

    Returns:
        Captured stdout.

    Raises:
        BuildError: If the command cannot be started or exits non-zero.
    """
    logger.debug("Building in %s: %s", working_dir, command)
    try:
        proc = subprocess.run(
            command,
            shell=True,
            cwd=working_dir,
            capture_output=True,
            text=True,
        )
    except OSError as e:
        raise BuildError(f"{command}: {e}") from e

    if proc.returncode != 0:
        output = (proc.stderr or proc.stdout).strip()
        raise BuildError(f"{command} exited with {proc.returncode}: {output}")
    return proc.stdout
