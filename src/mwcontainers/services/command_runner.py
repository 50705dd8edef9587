"""Subprocess execution service for mwcontainers."""

import subprocess
from typing import Dict, List, Optional

from mwcontainers.errors import CommandError, DeployError
from mwcontainers.errors_catalog import actionable_error


class CommandRunner:
    """Runs external commands with consistent error handling."""

    def __init__(self, logger):
        self.logger = logger

    def run(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = False,
        timeout: Optional[float] = None,
        env: Optional[Dict[str, str]] = None,
        cwd: Optional[str] = None,
    ) -> subprocess.CompletedProcess:
        cmd_str = " ".join(cmd)
        self.logger.debug("Executing: %s", cmd_str)

        try:
            result = subprocess.run(
                cmd,
                text=True,
                capture_output=capture_output,
                timeout=timeout,
                env=env,
                cwd=cwd,
            )
        except FileNotFoundError as exc:
            raise DeployError(actionable_error("command_not_found", command=cmd[0])) from exc
        except subprocess.TimeoutExpired as exc:
            raise DeployError(f"Command timed out after {timeout}s: {cmd_str}") from exc
        except OSError as exc:
            raise DeployError(f"Failed to execute command: {cmd_str}. {exc}") from exc

        if capture_output and result.stdout:
            self.logger.debug("Command output: %s", result.stdout.strip())

        if result.returncode == 0:
            return result

        stderr = (result.stderr or "").strip() if capture_output else ""
        message = f"Command failed ({result.returncode}): {cmd_str}"
        if stderr:
            message = f"{message}\n{stderr}"

        if check:
            raise CommandError(message, result.returncode)

        self.logger.debug(message)
        return result
