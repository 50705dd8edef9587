"""Filesystem helpers for mwcontainers."""

import logging
import os
import sys
from typing import Iterable

from rich.console import Console

from mwcontainers.errors import DeployError


class FileSystemService:
    """Encapsulates host directory side effects."""

    def __init__(self, logger: logging.Logger, console: Console):
        self.logger = logger
        self.console = console

    def set_permissions(self, path: str, mode: int):
        if sys.platform == "win32":
            return

        try:
            os.chmod(path, mode)
        except OSError as exc:
            self.logger.warning("Could not set permissions on %s: %s", path, exc)

    def ensure_dirs(self, paths: Iterable[str], mode: int):
        for path in paths:
            if os.path.isdir(path):
                continue
            try:
                os.makedirs(path, exist_ok=True)
            except OSError as exc:
                raise DeployError(f"Could not create data directory {path}: {exc}") from exc
            self.set_permissions(path, mode)
            self.logger.debug("Created directory: %s", path)
