import os
import shutil
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple
from flare_agent.config import FlareSettings
from flare_agent.schemas import CollectorResult, CollectorStatus, FlareReport
from flare_agent.collectors.base import Collaborators, FlareContext
from flare_agent.collectors import config_files, files, http, logs, status, system
from .packager import zip_archive
from .paths import clean_directory_name, create_temp_dir, get_archive_path

logger = logging.getLogger("flare_agent.archive")

UNKNOWN_HOSTNAME = "unknown"

@dataclass
class Step:
    name: str
    run: Callable[[FlareContext], Optional[str]]
    description: str
    enabled: bool = True
    level: int = logging.ERROR


class ArchiveOrchestrator:
    """
    Builds the flare workspace: one temp directory, one sub-directory named after
    the host, every collector run in a fixed order. Only the workspace creation
    can fail the whole operation; every collector failure is logged, recorded in
    the report, and collection goes on.
    """

    def __init__(self, settings: FlareSettings, collaborators: Optional[Collaborators] = None,
                 search_paths: Optional[config_files.SearchPaths] = None):
        self.settings = settings
        self.collaborators = collaborators or Collaborators()
        self.search_paths = search_paths

    def _resolve_hostname(self) -> str:
        try:
            hostname = self.collaborators.hostname()
        except Exception as e:
            logger.warning(f"Could not resolve hostname, using '{UNKNOWN_HOSTNAME}': {e}")
            hostname = None
        return clean_directory_name(hostname or UNKNOWN_HOSTNAME)

    def _add_auth_token_perms(self, ctx: FlareContext):
        # Only if it exists: its absence is already visible in the flare
        if os.path.exists(self.settings.AUTH_TOKEN_FILE):
            ctx.perms.add(self.settings.AUTH_TOKEN_FILE)

    def steps(self, local: bool) -> List[Step]:
        s = self.settings
        c = self.collaborators
        if local:
            # Can't reach the agent, mention it in the status and config-check files
            head = [
                Step("local", status.write_local_marker, "local marker"),
                Step("status", status.write_status_file_local, "status"),
                Step("config-check", status.write_config_check_local, "config check"),
            ]
        else:
            head = [
                Step("status", status.write_status_file, "status"),
                Step("config-check", status.write_config_check, "config check"),
                Step("tagger-list", http.write_tagger_list, "tagger list"),
            ]
        return head + [
            Step("auth-token-permissions", self._add_auth_token_perms, "auth token permissions"),
            Step("config", lambda ctx: config_files.write_config_files(ctx, self.search_paths), "config"),
            Step("expvar", http.write_expvar, "exp var"),
            Step("system-probe", http.write_system_probe_stats, "system probe exp var stats",
                 enabled=s.SYSTEM_PROBE_ENABLED),
            Step("diagnose", status.write_diagnose, "diagnose"),
            Step("registry", files.write_registry_json, "registry.json", level=logging.WARNING),
            Step("version-history", files.write_version_history, "version-history.json"),
            Step("secrets", status.write_secrets, "secrets"),
            Step("envvars", system.write_envvars, "env vars"),
            Step("health", status.write_health, "health check"),
            Step("telemetry", http.write_telemetry, "telemetry metrics", enabled=s.TELEMETRY_ENABLED),
            Step("stack-traces", http.write_stack_traces, "go routine stack traces"),
            Step("docker-inspect", system.write_docker_self_inspect, "docker inspect",
                 enabled=s.CONTAINERIZED and c.docker_self_inspect is not None),
            Step("docker-ps", system.write_docker_ps, "docker ps", enabled=c.docker_ps is not None),
            Step("logs", logs.write_log_files, "logs"),
            Step("install-info", files.write_install_info, "install_info"),
        ]

    def _run(self, step: Step, ctx: FlareContext) -> CollectorResult:
        if not step.enabled:
            return CollectorResult(name=step.name, status=CollectorStatus.SKIPPED)
        try:
            reason = step.run(ctx)
        except Exception as e:
            logger.log(step.level, f"Could not write {step.description}: {e}")
            return CollectorResult(name=step.name, status=CollectorStatus.DEGRADED, reason=str(e))
        if isinstance(reason, str):
            return CollectorResult(name=step.name, status=CollectorStatus.DEGRADED, reason=reason)
        return CollectorResult(name=step.name)

    def create_archive(self, local: bool = False) -> FlareReport:
        temp_dir = create_temp_dir()
        hostname = self._resolve_hostname()
        ctx = FlareContext(temp_dir=temp_dir, hostname=hostname, settings=self.settings,
                           collaborators=self.collaborators)
        report = FlareReport(temp_dir=temp_dir, hostname=hostname, local=local)
        logger.info(f"Collecting flare into {os.path.join(temp_dir, hostname)} (local={local})")

        for step in self.steps(local):
            report.results.append(self._run(step, ctx))

        # gets files infos and write the permissions.log file
        finalize = Step("permissions", lambda c: c.perms.commit(c.temp_dir, c.hostname), "permissions.log file")
        report.results.append(self._run(finalize, ctx))

        degraded = report.degraded()
        if degraded:
            logger.info(f"Flare collected with {len(degraded)} degraded collectors: {[r.name for r in degraded]}")
        return report


def create_flare(settings: FlareSettings, collaborators: Optional[Collaborators] = None, local: bool = False,
                 archive_path: Optional[str] = None,
                 search_paths: Optional[config_files.SearchPaths] = None) -> Tuple[str, FlareReport]:
    """
    Collects and zips a flare. On success the workspace (report.temp_dir) is
    left on disk and removing it is up to the caller. If packaging fails the
    workspace is removed before the error propagates.
    """
    report = ArchiveOrchestrator(settings, collaborators, search_paths).create_archive(local)
    try:
        path = zip_archive(archive_path or get_archive_path(), report.temp_dir, report.hostname)
    except Exception:
        logger.error(f"Could not package the flare, removing workspace {report.temp_dir}")
        shutil.rmtree(report.temp_dir, ignore_errors=True)
        raise
    return path, report
