"""Deployment config file (shell-sourceable key=value) handling."""

import os
from typing import Dict, Mapping, Optional

from dotenv import dotenv_values, set_key

from mwcontainers.constants import (
    CONFIG_FILE_NAME,
    DEFAULT_ADMIN_USER,
    DEFAULT_DATA_DIR,
    DEFAULT_DB_PASSWORD,
    DEFAULT_DOMAIN,
    DEFAULT_INSTALLER_SCRIPT,
    DEFAULT_REPO_DIR,
    DEFAULT_REPO_URL,
    DEFAULT_SERVICE_NAME,
    DIR_MODE,
    FILE_MODE,
)
from mwcontainers.errors import DeployError
from mwcontainers.models import DeployConfig
from mwcontainers.services.credentials import generate_password


class SiteConfigService:
    """Builds the DeployConfig from the data directory config file and the environment.

    Values in the file win over the process environment, the same way sourcing
    the file in a shell would.
    """

    def __init__(self, logger, password_generator=generate_password):
        self.logger = logger
        self.password_generator = password_generator

    def read_values(self, config_file: str) -> Dict[str, str]:
        if not os.path.isfile(config_file):
            self.logger.debug("No config file at %s", config_file)
            return {}

        try:
            parsed = dotenv_values(config_file)
        except (OSError, UnicodeDecodeError) as exc:
            raise DeployError(f"Could not read config file '{config_file}': {exc}") from exc

        return {key: value for key, value in parsed.items() if value is not None}

    def load(
        self,
        data_dir: str = DEFAULT_DATA_DIR,
        repo_dir: str = DEFAULT_REPO_DIR,
        repo_url: str = DEFAULT_REPO_URL,
        service_name: str = DEFAULT_SERVICE_NAME,
        environ: Optional[Mapping[str, str]] = None,
    ) -> DeployConfig:
        environ = os.environ if environ is None else environ
        values = self.read_values(os.path.join(data_dir, CONFIG_FILE_NAME))

        def lookup(key: str, default: str = "") -> str:
            if key in values:
                value = values[key]
            else:
                value = environ.get(key, "")
            return value or default

        admin_password = lookup("MEDIAWIKI_ADMIN_PASS")
        generated = False
        if not admin_password:
            admin_password = self.password_generator()
            generated = True
            self.logger.debug("Generated a new admin password.")

        return DeployConfig(
            data_dir=data_dir,
            repo_dir=repo_dir,
            repo_url=repo_url,
            installer_script=DEFAULT_INSTALLER_SCRIPT,
            service_name=service_name,
            domain=lookup("MEDIAWIKI_DOMAIN", DEFAULT_DOMAIN),
            admin_user=lookup("MEDIAWIKI_ADMIN_USER", DEFAULT_ADMIN_USER),
            admin_password=admin_password,
            db_password=lookup("MYSQL_ROOT_PASSWORD", DEFAULT_DB_PASSWORD),
            admin_password_generated=generated,
            values=values,
        )

    def persist_generated(self, config: DeployConfig) -> bool:
        """Writes a freshly generated password to the config file."""
        if not config.admin_password_generated:
            return False

        try:
            os.makedirs(config.data_dir, mode=DIR_MODE, exist_ok=True)
            if not os.path.exists(config.config_file):
                with open(config.config_file, "a", encoding="utf-8"):
                    pass
            set_key(config.config_file, "MEDIAWIKI_DOMAIN", config.domain)
            set_key(config.config_file, "MEDIAWIKI_ADMIN_PASS", config.admin_password)
            os.chmod(config.config_file, FILE_MODE)
        except OSError as exc:
            raise DeployError(f"Could not write config file '{config.config_file}': {exc}") from exc

        self.logger.info("Saved generated credentials to %s", config.config_file)
        return True
