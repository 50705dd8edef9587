"""CLI defaults loader for mwcontainers."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from mwcontainers.errors import DeployError


class ConfigLoader:
    """Loads YAML configuration files for CLI defaults."""

    SUPPORTED_KEYS = {
        "yes",
        "verbose",
        "log_file",
        "timeout",
        "data_dir",
        "repo_dir",
        "repo_url",
        "service_name",
    }

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise DeployError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise DeployError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise DeployError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise DeployError(f"Unknown configuration keys: {unknown_list}")

        return parsed
