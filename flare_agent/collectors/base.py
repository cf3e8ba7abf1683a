import os
import socket
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Union
from flare_agent.config import FlareSettings
from flare_agent.schemas import HealthStatus
from flare_agent.core.paths import ensure_parent_dirs_exist
from flare_agent.core.permissions import PermissionsTracker
from flare_agent.core.redacting_writer import new_redacting_writer, write_redacted

class SnapshotProvider(ABC):
    """An agent subsystem able to produce a formatted snapshot of itself."""

    @abstractmethod
    def snapshot(self) -> bytes:
        pass


class FuncSnapshot(SnapshotProvider):
    """Adapts a plain callable returning str or bytes."""

    def __init__(self, func: Callable[[], Union[str, bytes]]):
        self.func = func

    def snapshot(self) -> bytes:
        data = self.func()
        return data.encode("utf-8") if isinstance(data, str) else data


class HealthProvider(ABC):
    @abstractmethod
    def snapshot(self) -> HealthStatus:
        pass


class ConfigStore(ABC):
    @abstractmethod
    def all_settings(self) -> Dict[str, Any]:
        """Full runtime configuration of the agent."""
        pass

    @abstractmethod
    def config_file_used(self) -> Optional[str]:
        """Path of the configuration file the agent was started with, if any."""
        pass


@dataclass
class Collaborators:
    hostname: Callable[[], str] = socket.gethostname
    status: Optional[SnapshotProvider] = None
    config_check: Optional[SnapshotProvider] = None
    diagnose: Optional[SnapshotProvider] = None
    secrets: Optional[SnapshotProvider] = None
    health: Optional[HealthProvider] = None
    config_store: Optional[ConfigStore] = None
    docker_self_inspect: Optional[SnapshotProvider] = None
    docker_ps: Optional[SnapshotProvider] = None


@dataclass
class FlareContext:
    """Everything a collector needs: the workspace, the settings and the shared tracker."""
    temp_dir: str
    hostname: str
    settings: FlareSettings
    collaborators: Collaborators = field(default_factory=Collaborators)
    perms: PermissionsTracker = field(default_factory=PermissionsTracker)

    def path(self, *parts: str) -> str:
        return os.path.join(self.temp_dir, self.hostname, *parts)

    def write_file(self, relpath: str, data: Union[str, bytes]) -> str:
        f = self.path(relpath)
        ensure_parent_dirs_exist(f)
        write_redacted(f, data)
        return f

    def copy_file(self, src: str, relpath: str) -> str:
        f = self.path(relpath)
        ensure_parent_dirs_exist(f)
        with new_redacting_writer(f) as w:
            w.write_from_file(src)
        return f
