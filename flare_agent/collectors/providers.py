import os
import socket
import logging
import subprocess
from typing import Any, Dict, List, Optional
import yaml
from flare_agent.config import FlareSettings
from flare_agent.errors import CollaboratorError
from flare_agent.ipc import IPCClient
from flare_agent.schemas import HealthStatus
from .base import Collaborators, ConfigStore, HealthProvider, SnapshotProvider

logger = logging.getLogger("flare_agent.providers")


class IPCSnapshot(SnapshotProvider):
    """Snapshot served by one endpoint of the agent command API."""

    def __init__(self, client: IPCClient, path: str):
        self.client = client
        self.path = path

    def snapshot(self) -> bytes:
        resp = self.client.get(self.path)
        if not resp.ok:
            raise CollaboratorError(
                f"{self.path} answered {resp.status_code}: {resp.text.strip()}",
                details={"status_code": resp.status_code},
            )
        return resp.content


class IPCHealth(HealthProvider):
    def __init__(self, client: IPCClient, path: str = "/agent/status/health"):
        self.client = client
        self.path = path

    def snapshot(self) -> HealthStatus:
        resp = self.client.get(self.path)
        if not resp.ok:
            raise CollaboratorError(f"{self.path} answered {resp.status_code}")
        data = resp.json()
        return HealthStatus(
            healthy=data.get("Healthy") or data.get("healthy") or [],
            unhealthy=data.get("Unhealthy") or data.get("unhealthy") or [],
        )


class CommandSnapshot(SnapshotProvider):
    """Output of a local command, stdout and stderr combined."""

    def __init__(self, args: List[str], timeout: float = 10):
        self.args = args
        self.timeout = timeout

    def snapshot(self) -> bytes:
        try:
            result = subprocess.run(self.args, capture_output=True, timeout=self.timeout)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise CollaboratorError(f"{' '.join(self.args)} failed: {e}")
        if result.returncode != 0:
            raise CollaboratorError(f"{' '.join(self.args)} exited with {result.returncode}: {result.stderr.decode(errors='replace').strip()}")
        return result.stdout + result.stderr


class YamlConfigStore(ConfigStore):
    """Agent configuration read straight from its YAML file."""

    def __init__(self, path: Optional[str]):
        self.path = path

    def config_file_used(self) -> Optional[str]:
        if self.path and os.path.isfile(self.path):
            return self.path
        return None

    def all_settings(self) -> Dict[str, Any]:
        used = self.config_file_used()
        if not used:
            return {}
        with open(used, "r") as f:
            data = yaml.safe_load(f)
        return data if isinstance(data, dict) else {}


def default_collaborators(settings: FlareSettings) -> Collaborators:
    client = IPCClient(settings)
    collaborators = Collaborators(
        hostname=socket.gethostname,
        status=IPCSnapshot(client, "/agent/status/formatted"),
        config_check=IPCSnapshot(client, "/agent/config-check"),
        diagnose=IPCSnapshot(client, "/agent/diagnose"),
        secrets=IPCSnapshot(client, "/agent/secrets"),
        health=IPCHealth(client),
        config_store=YamlConfigStore(settings.CONFIG_FILE),
        docker_ps=CommandSnapshot(["docker", "ps", "--all", "--no-trunc"]),
    )
    if settings.CONTAINERIZED:
        # Inside a container the hostname is the container id
        collaborators.docker_self_inspect = CommandSnapshot(["docker", "inspect", socket.gethostname()])
    return collaborators
