import logging
import subprocess
import threading
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape

from .constants import APACHE_STARTED_MARKER, DEFAULT_SENTINEL_TIMEOUT, INSTALL_DONE_SENTINEL
from .errors import DeployError, InstallAborted, SentinelNotFound
from .errors_catalog import actionable_error
from .models import DeployConfig
from .services.command_runner import CommandRunner
from .services.docker_runtime import DockerClient
from .services.filesystem import FileSystemService
from .services.journal import JournalService
from .services.lifecycle import LifecycleService
from .services.repository import RepositoryService
from .services.site_config import SiteConfigService

console = Console()
error_console = Console(stderr=True)
logger = logging.getLogger("mwcontainers")


class MediaWikiContainers:
    COMMANDS = ("start", "stop", "restart", "install")

    def __init__(
        self,
        config: DeployConfig,
        sentinel_timeout: Optional[float] = DEFAULT_SENTINEL_TIMEOUT,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.config = config
        self.sentinel_timeout = sentinel_timeout
        self.cancel_event = cancel_event

        self.command_runner = CommandRunner(logger=logger)
        self.filesystem_service = FileSystemService(logger=logger, console=console)
        self.docker = DockerClient(logger=logger, console=console, command_runner=self.command_runner)
        self.lifecycle_service = LifecycleService(
            logger=logger,
            console=console,
            docker_client=self.docker,
            filesystem_service=self.filesystem_service,
        )
        self.site_config_service = SiteConfigService(logger=logger)
        self.repository_service = RepositoryService(
            logger=logger,
            console=console,
            command_runner=self.command_runner,
        )
        self.journal_service = JournalService(
            logger=logger,
            console=console,
            command_runner=self.command_runner,
            subprocess_module=subprocess,
        )

    def start(self):
        self.lifecycle_service.start(self.config)

    def stop(self):
        self.lifecycle_service.stop()

    def restart(self):
        self.stop()
        self.start()

    def docker_pull(self):
        self.lifecycle_service.pull()

    def confirm_install(self, assume_yes: bool = False):
        if assume_yes:
            return
        console.print(
            f"This will install MediaWiki for [bold]{escape(self.config.domain)}[/bold] "
            f"using {self.config.data_dir} and {self.config.repo_dir}."
        )
        try:
            confirmed = click.confirm("Proceed with installation?", default=None)
        except click.exceptions.Abort as exc:
            raise InstallAborted("Installation aborted by operator.") from exc
        if not confirmed:
            raise InstallAborted("Installation aborted by operator.")

    def install(self, assume_yes: bool = False):
        self.confirm_install(assume_yes)
        self._perform_install()

    def _perform_install(self):
        logger.info("Installing MediaWiki containers for %s", self.config.domain)
        self.docker.validate_environment()
        self.site_config_service.persist_generated(self.config)

        self.repository_service.ensure_git()
        self.repository_service.checkout(self.config)
        self.repository_service.run_installer(self.config)

        self.docker_pull()

        unit = self.config.service_name
        with self.journal_service.follow(unit) as follower:
            self.journal_service.restart_unit(unit)
            console.print("[yellow]Waiting for MediaWiki to finish its setup...[/yellow]")
            line = follower.wait_for(
                INSTALL_DONE_SENTINEL,
                timeout=self.sentinel_timeout,
                cancel_event=self.cancel_event,
            )
        logger.info("Setup finished: %s", line)

        try:
            self.journal_service.require_last_line(unit, APACHE_STARTED_MARKER)
        except SentinelNotFound as exc:
            for history_line in exc.history:
                error_console.print(history_line, markup=False, highlight=False)
            message = actionable_error("startup_marker_missing", marker=APACHE_STARTED_MARKER, unit=unit)
            error_console.print(f"[bold red]Error:[/bold red] {message}")
            logger.error(str(exc))
            return

        console.print(
            f"[bold green]MediaWiki is up at {escape(self.config.site_url)}[/bold green]\n"
            f"Admin user: {escape(self.config.admin_user)}\n"
            f"Admin password: {escape(self.config.admin_password)}"
        )

    def run(self, command: str = "install", assume_yes: bool = False) -> int:
        command = command or "install"
        try:
            if command == "stop":
                self.stop()
            elif command == "start":
                self.start()
            elif command == "restart":
                self.restart()
            elif command == "install":
                self.install(assume_yes=assume_yes)
            else:
                raise DeployError(f"Unknown command: {command}")
            return 0

        except KeyboardInterrupt:
            error_console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            return 1
        except InstallAborted as exc:
            error_console.print(f"[bold red]{exc}[/bold red]")
            return 1
        except DeployError as exc:
            error_console.print(f"[bold red]Error:[/bold red] {exc}")
            logger.error(str(exc))
            return 1
        except Exception as exc:
            error_console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            return 1
