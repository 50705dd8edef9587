"""git bootstrap and companion repository handling."""

import os
import shutil
from typing import Dict, Optional

from mwcontainers.constants import GIT_PACKAGE_MANAGERS
from mwcontainers.errors import DeployError
from mwcontainers.errors_catalog import actionable_error
from mwcontainers.models import DeployConfig


class RepositoryService:
    """Keeps the mediawiki-containers checkout current and runs its installer."""

    def __init__(self, logger, console, command_runner, which=shutil.which):
        self.logger = logger
        self.console = console
        self.command_runner = command_runner
        self.which = which

    def ensure_git(self):
        git_path = self.which("git")
        if git_path:
            self.logger.debug("git found at %s", git_path)
            return

        for manager in GIT_PACKAGE_MANAGERS:
            if not self.which(manager):
                continue
            self.console.print(f"[yellow]git not found, installing it with {manager}...[/yellow]")
            self.command_runner.run([manager, "-y", "install", "git"], capture_output=True)
            return

        raise DeployError(
            actionable_error("no_package_manager", managers=", ".join(GIT_PACKAGE_MANAGERS))
        )

    def checkout(self, config: DeployConfig):
        if os.path.isdir(os.path.join(config.repo_dir, ".git")):
            self.console.print(f"[blue]Updating {config.repo_dir}...[/blue]")
            self.command_runner.run(
                ["git", "-C", config.repo_dir, "pull", "--ff-only"],
                capture_output=True,
            )
            return

        self.console.print(f"[blue]Cloning {config.repo_url} into {config.repo_dir}...[/blue]")
        parent = os.path.dirname(os.path.abspath(config.repo_dir))
        os.makedirs(parent, exist_ok=True)
        self.command_runner.run(
            ["git", "clone", config.repo_url, config.repo_dir],
            capture_output=True,
        )

    def run_installer(self, config: DeployConfig, base_env: Optional[Dict[str, str]] = None):
        """Sources the companion script and calls its do_install function."""
        script = os.path.join(config.repo_dir, config.installer_script)
        if not os.path.isfile(script):
            raise DeployError(f"Companion installer not found: {script}")

        env = dict(os.environ if base_env is None else base_env)
        env.update(config.installer_env())

        self.console.print("[blue]Running companion installer...[/blue]")
        self.command_runner.run(
            ["bash", "-c", 'set -e; source "$1"; do_install', "mwcontainers-install", script],
            env=env,
            cwd=config.repo_dir,
        )
