import os
from typing import Dict, List, Optional
from pydantic_settings import BaseSettings

class FlareSettings(BaseSettings):
    # Agent Layout
    CONFD_PATH: str = "/etc/datadog-agent/conf.d"
    DIST_PATH: str = "/opt/datadog-agent/bin/agent/dist"
    CHECKSD_PATH: str = "/etc/datadog-agent/checks.d"
    CONFIG_FILE: Optional[str] = "/etc/datadog-agent/datadog.yaml"
    LOG_FILE: str = "/var/log/datadog/agent.log"
    RUN_PATH: str = "/opt/datadog-agent/run"
    AUTH_TOKEN_FILE: str = "/etc/datadog-agent/auth_token"

    # IPC API
    IPC_ADDRESS: str = "localhost"
    CMD_PORT: int = 5001
    TAGGER_LIST_URL: Optional[str] = None

    # Loopback Diagnostic Endpoints
    EXPVAR_PORT: int = 5000
    APM_RECEIVER_PORT: int = 8126
    SYSTEM_PROBE_ENABLED: bool = False
    SYSTEM_PROBE_STATS_URL: str = "http://127.0.0.1:3333/debug/stats"
    TELEMETRY_ENABLED: bool = False
    HTTP_TIMEOUT_SECONDS: float = 4.0

    # Environment
    CONTAINERIZED: bool = False
    ENV_VAR_PREFIXES: List[str] = ["DD_"]
    ENV_VAR_ALLOWLIST: List[str] = [
        "HOST_PROC",
        "HOST_SYS",
        "HOST_ETC",
        "DOCKER_HOST",
        "HTTP_PROXY",
        "HTTPS_PROXY",
        "NO_PROXY",
    ]

    class Config:
        env_prefix = "FLARE_"

    def search_paths(self) -> Dict[str, str]:
        """Roots scanned for shippable check configuration files, keyed by bundle prefix."""
        return {
            "": self.CONFD_PATH,
            "dist": os.path.join(self.DIST_PATH, "conf.d"),
            "checksd": self.CHECKSD_PATH,
        }

    @property
    def expvar_url(self) -> str:
        return f"http://127.0.0.1:{self.EXPVAR_PORT}/debug/vars"

    @property
    def pprof_url(self) -> str:
        return f"http://127.0.0.1:{self.EXPVAR_PORT}/debug/pprof/goroutine?debug=2"

    @property
    def telemetry_url(self) -> str:
        return f"http://127.0.0.1:{self.EXPVAR_PORT}/telemetry"

    @property
    def trace_agent_vars_url(self) -> str:
        return f"http://127.0.0.1:{self.APM_RECEIVER_PORT}/debug/vars"

    @property
    def ipc_base_url(self) -> str:
        return f"https://{self.IPC_ADDRESS}:{self.CMD_PORT}"

    @property
    def tagger_list_url(self) -> str:
        return self.TAGGER_LIST_URL or f"{self.ipc_base_url}/agent/tagger-list"
