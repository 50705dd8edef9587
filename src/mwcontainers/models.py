"""Shared domain models for mwcontainers."""

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from mwcontainers.constants import CONFIG_FILE_NAME


@dataclass(frozen=True)
class DeployConfig:
    """Deployment settings resolved once at startup."""

    data_dir: str
    repo_dir: str
    repo_url: str
    installer_script: str
    service_name: str
    domain: str
    admin_user: str
    admin_password: str
    db_password: str
    admin_password_generated: bool = False
    values: Dict[str, str] = field(default_factory=dict)

    @property
    def config_file(self) -> str:
        return os.path.join(self.data_dir, CONFIG_FILE_NAME)

    @property
    def site_server(self) -> str:
        return f"//{self.domain}"

    @property
    def site_url(self) -> str:
        return f"http://{self.domain}/"

    def data_path(self, *parts: str) -> str:
        return os.path.join(self.data_dir, *parts)

    def installer_env(self) -> Dict[str, str]:
        """Variables exported to the companion installer."""
        env = dict(self.values)
        env.update(
            {
                "MEDIAWIKI_DOMAIN": self.domain,
                "MEDIAWIKI_ADMIN_USER": self.admin_user,
                "MEDIAWIKI_ADMIN_PASS": self.admin_password,
                "MYSQL_ROOT_PASSWORD": self.db_password,
                "DATADIR": self.data_dir,
                "BASEDIR": self.repo_dir,
            }
        )
        return env


@dataclass(frozen=True)
class ContainerSpec:
    name: str
    image: str
    env: Dict[str, str] = field(default_factory=dict)
    volumes: List[str] = field(default_factory=list)
    ports: List[str] = field(default_factory=list)
    dns: Optional[str] = None
    dns_search: Optional[str] = None

    def with_dns(self, address: str, search: Optional[str] = None) -> "ContainerSpec":
        return ContainerSpec(
            name=self.name,
            image=self.image,
            env=dict(self.env),
            volumes=list(self.volumes),
            ports=list(self.ports),
            dns=address,
            dns_search=search,
        )


@dataclass(frozen=True)
class ContainerInfo:
    name: str
    container_id: str
    image: str
    running: bool
    ip_address: str
    networks: Tuple[str, ...] = ()
