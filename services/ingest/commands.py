from __future__ import annotations

import logging
import subprocess

logger = logging.getLogger(__name__)


class CommandError(RuntimeError):
    pass


def run_command(command: list[str], timeout_s: int) -> subprocess.CompletedProcess:
    """Run an external tool once; failures surface as CommandError."""
    logger.debug("command=%s", command)
    try:
        return subprocess.run(
            command,
            check=True,
            capture_output=True,
            text=True,
            timeout=timeout_s,
        )
    except subprocess.CalledProcessError as exc:
        detail = (exc.stderr or exc.stdout or "").strip()
        raise CommandError(f"{command[0]} exited with status {exc.returncode}: {detail}") from exc
    except subprocess.TimeoutExpired as exc:
        raise CommandError(f"{command[0]} timed out after {timeout_s}s") from exc
    except FileNotFoundError as exc:
        raise CommandError(f"{command[0]} is not installed") from exc
