import logging
import os

import click
from rich.logging import RichHandler

from .constants import (
    DEFAULT_DATA_DIR,
    DEFAULT_REPO_DIR,
    DEFAULT_REPO_URL,
    DEFAULT_SENTINEL_TIMEOUT,
    DEFAULT_SERVICE_NAME,
)
from .core import DeployError, MediaWikiContainers
from .services.config_loader import ConfigLoader
from .services.site_config import SiteConfigService

DEFAULT_CONFIG_NAME = ".mwcontainers.yml"


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


@click.command()
@click.argument("command", required=False, default="install")
@click.option(
    "--yes",
    "-y",
    "assume_yes",
    is_flag=True,
    default=None,
    help="Install without asking for confirmation.",
)
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML file with CLI defaults. Defaults to {DEFAULT_CONFIG_NAME} if present.",
)
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
@click.option(
    "--timeout",
    required=False,
    type=click.FloatRange(min=0),
    default=None,
    help="Seconds to wait for MediaWiki setup to finish after install (0 waits forever).",
)
@click.pass_context
def main(ctx, command, assume_yes, config, verbose, log_file, timeout):
    """Deploy and manage the MediaWiki container stack.

    COMMAND is one of start, stop, restart or install (default).
    """
    command = command or "install"
    if command not in MediaWikiContainers.COMMANDS:
        choices = "|".join(MediaWikiContainers.COMMANDS)
        click.echo(f"Usage: {ctx.command_path} {{{choices}}}", err=True)
        ctx.exit(1)

    logger = logging.getLogger("mwcontainers")

    try:
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_NAME)
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        config_values = ConfigLoader().load(resolved_config)
    except DeployError as exc:
        raise click.ClickException(str(exc)) from exc

    assume_yes = bool(_resolve_option(assume_yes, config_values, "yes", default=False))
    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")
    timeout = _resolve_option(timeout, config_values, "timeout", default=DEFAULT_SENTINEL_TIMEOUT)
    try:
        timeout = float(timeout)
    except (TypeError, ValueError) as exc:
        raise click.ClickException(f"Invalid timeout: {timeout!r}. Use a number of seconds.") from exc
    if timeout < 0:
        raise click.ClickException("Timeout must be zero or a positive number of seconds.")

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)

    try:
        deploy_config = SiteConfigService(logger=logger).load(
            data_dir=config_values.get("data_dir", DEFAULT_DATA_DIR),
            repo_dir=config_values.get("repo_dir", DEFAULT_REPO_DIR),
            repo_url=config_values.get("repo_url", DEFAULT_REPO_URL),
            service_name=config_values.get("service_name", DEFAULT_SERVICE_NAME),
        )
    except DeployError as exc:
        raise click.ClickException(str(exc)) from exc

    deployer = MediaWikiContainers(
        config=deploy_config,
        sentinel_timeout=timeout or None,
    )
    raise SystemExit(deployer.run(command, assume_yes=assume_yes))


if __name__ == "__main__":
    main()
