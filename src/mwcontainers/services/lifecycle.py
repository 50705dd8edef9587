"""Container lifecycle for the MediaWiki stack."""

from typing import List

from mwcontainers.constants import (
    APP_CONTAINER,
    APP_IMAGE,
    DB_CONTAINER,
    DB_IMAGE,
    DIR_MODE,
    DNS_CONTAINER,
    DNS_IMAGE,
    DNS_SEARCH_DOMAIN,
    NODE_SERVICES_CONTAINER,
    NODE_SERVICES_IMAGE,
)
from mwcontainers.errors import DeployError
from mwcontainers.errors_catalog import actionable_error
from mwcontainers.models import ContainerSpec, DeployConfig

CONTAINER_NAMES = (DNS_CONTAINER, DB_CONTAINER, APP_CONTAINER, NODE_SERVICES_CONTAINER)
IMAGES = (DNS_IMAGE, DB_IMAGE, APP_IMAGE, NODE_SERVICES_IMAGE)
DATA_SUBDIRS = ("mysql", "mediawiki", "node-services")


class LifecycleService:
    """Starts, stops and refreshes the four stack containers in dependency order."""

    def __init__(self, logger, console, docker_client, filesystem_service):
        self.logger = logger
        self.console = console
        self.docker = docker_client
        self.filesystem_service = filesystem_service

    def dns_spec(self, config: DeployConfig) -> ContainerSpec:
        return ContainerSpec(
            name=DNS_CONTAINER,
            image=DNS_IMAGE,
            volumes=["/var/run/docker.sock:/var/run/docker.sock:ro"],
        )

    def dependent_specs(self, config: DeployConfig) -> List[ContainerSpec]:
        """Database, wiki and Node services specs, before DNS wiring."""
        db_host = f"{DB_CONTAINER}.{DNS_SEARCH_DOMAIN}"
        app_host = f"{APP_CONTAINER}.{DNS_SEARCH_DOMAIN}"
        return [
            ContainerSpec(
                name=DB_CONTAINER,
                image=DB_IMAGE,
                env={"MYSQL_ROOT_PASSWORD": config.db_password},
                volumes=[f"{config.data_path('mysql')}:/var/lib/mysql:rw"],
            ),
            ContainerSpec(
                name=APP_CONTAINER,
                image=APP_IMAGE,
                env={
                    "MEDIAWIKI_SITE_SERVER": config.site_server,
                    "MEDIAWIKI_ADMIN_USER": config.admin_user,
                    "MEDIAWIKI_ADMIN_PASS": config.admin_password,
                    "MEDIAWIKI_DB_HOST": db_host,
                    "MEDIAWIKI_DB_PASSWORD": config.db_password,
                    "MEDIAWIKI_RESTBASE_URL": f"http://{NODE_SERVICES_CONTAINER}.{DNS_SEARCH_DOMAIN}:7231/localhost/v1",
                    "MEDIAWIKI_UPDATE": "true",
                },
                volumes=[f"{config.data_path('mediawiki')}:/data:rw"],
                ports=["80:80"],
            ),
            ContainerSpec(
                name=NODE_SERVICES_CONTAINER,
                image=NODE_SERVICES_IMAGE,
                env={"MEDIAWIKI_API_URL": f"http://{app_host}/api.php"},
                volumes=[f"{config.data_path('node-services')}:/data"],
            ),
        ]

    def start(self, config: DeployConfig):
        self.console.print("[blue]Starting MediaWiki containers...[/blue]")
        self.filesystem_service.ensure_dirs(
            [config.data_path(subdir) for subdir in DATA_SUBDIRS],
            mode=DIR_MODE,
        )

        self.docker.run(self.dns_spec(config))
        dns_address = self.docker.inspect(DNS_CONTAINER).ip_address
        if not dns_address:
            raise DeployError(actionable_error("dns_address_missing", name=DNS_CONTAINER))
        self.logger.info("DNS resolver listening on %s", dns_address)

        for spec in self.dependent_specs(config):
            self.docker.run(spec.with_dns(dns_address, DNS_SEARCH_DOMAIN))

        self.console.print("[green]MediaWiki containers started.[/green]")

    def stop(self):
        self.console.print("[blue]Stopping MediaWiki containers...[/blue]")
        for name in reversed(CONTAINER_NAMES):
            self.docker.remove(name, force=True)

    def pull(self):
        self.console.print("[blue]Pulling container images...[/blue]")
        for image in IMAGES:
            self.docker.pull(image)
        self.console.print("[green]Images are up to date.[/green]")
