"""Docker runtime client for mwcontainers."""

import json
from typing import List

from mwcontainers.errors import CommandError, DeployError
from mwcontainers.errors_catalog import actionable_error
from mwcontainers.models import ContainerInfo, ContainerSpec


class DockerClient:
    """Thin typed wrapper over the docker CLI."""

    def __init__(self, logger, console, command_runner, docker_cmd: str = "docker"):
        self.logger = logger
        self.console = console
        self.command_runner = command_runner
        self.docker_cmd = docker_cmd

    def validate_environment(self):
        self.console.print("[blue]Validating Docker environment...[/blue]")
        try:
            self.command_runner.run([self.docker_cmd, "version"], capture_output=True)
        except CommandError as exc:
            raise DeployError(f"{actionable_error('docker_unavailable')}\n{exc}") from exc
        self.console.print("[green]Docker is available.[/green]")

    def build_run_command(self, spec: ContainerSpec) -> List[str]:
        cmd = [self.docker_cmd, "run", "-d", "--name", spec.name]
        if spec.dns:
            cmd += ["--dns", spec.dns]
        if spec.dns_search:
            cmd += ["--dns-search", spec.dns_search]
        for port in spec.ports:
            cmd += ["-p", port]
        for volume in spec.volumes:
            cmd += ["-v", volume]
        for key, value in spec.env.items():
            cmd += ["-e", f"{key}={value}"]
        cmd.append(spec.image)
        return cmd

    def run(self, spec: ContainerSpec) -> str:
        """Starts a detached container and returns its id."""
        self.logger.info("Starting container %s (%s)", spec.name, spec.image)
        result = self.command_runner.run(self.build_run_command(spec), capture_output=True)
        container_id = (result.stdout or "").strip()
        self.logger.debug("Container %s started with id %s", spec.name, container_id)
        return container_id

    def inspect(self, name: str) -> ContainerInfo:
        result = self.command_runner.run(
            [self.docker_cmd, "inspect", "--type", "container", name],
            capture_output=True,
        )
        try:
            payload = json.loads(result.stdout or "[]")
        except json.JSONDecodeError as exc:
            raise DeployError(f"Could not parse docker inspect output for {name}: {exc}") from exc

        if not isinstance(payload, list) or not payload:
            raise DeployError(f"docker inspect returned no data for container {name}.")

        data = payload[0]
        settings = data.get("NetworkSettings") or {}
        networks = settings.get("Networks") or {}

        ip_address = settings.get("IPAddress") or ""
        if not ip_address:
            for network in networks.values():
                if network and network.get("IPAddress"):
                    ip_address = network["IPAddress"]
                    break

        return ContainerInfo(
            name=(data.get("Name") or name).lstrip("/"),
            container_id=data.get("Id", ""),
            image=(data.get("Config") or {}).get("Image", ""),
            running=bool((data.get("State") or {}).get("Running")),
            ip_address=ip_address,
            networks=tuple(sorted(networks)),
        )

    def remove(self, name: str, force: bool = True) -> bool:
        """Removes a container; returns False when docker refused, e.g. it is absent."""
        cmd = [self.docker_cmd, "rm"]
        if force:
            cmd.append("-f")
        cmd.append(name)

        result = self.command_runner.run(cmd, check=False, capture_output=True)
        if result.returncode != 0:
            self.logger.debug("Container %s not removed: %s", name, (result.stderr or "").strip())
            return False

        self.logger.info("Removed container %s", name)
        return True

    def pull(self, image: str):
        self.logger.info("Pulling image %s", image)
        self.command_runner.run([self.docker_cmd, "pull", image], capture_output=True)
