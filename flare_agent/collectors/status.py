import logging
from typing import Optional, Tuple
import yaml
from flare_agent.errors import CollaboratorError
from .base import FlareContext, SnapshotProvider

logger = logging.getLogger("flare_agent.collectors.status")

LOCAL_STATUS_MESSAGE = "unable to get the status of the agent, is it running?"
LOCAL_CONFIG_CHECK_MESSAGE = "unable to get loaded checks config, is the agent running?"


def _require(provider, what: str):
    if provider is None:
        raise CollaboratorError(f"no {what} provider configured")
    return provider


def _snapshot_or_fallback(provider: Optional[SnapshotProvider], what: str, fallback: str) -> Tuple[bytes, Optional[str]]:
    try:
        return _require(provider, what).snapshot(), None
    except Exception as e:
        logger.warning(f"Could not get {what} from the agent, writing local message instead: {e}")
        return fallback.encode("utf-8"), str(e)


def write_local_marker(ctx: FlareContext):
    # Empty file flagging a flare built without reaching the agent
    ctx.write_file("local", b"")


def write_status_file_local(ctx: FlareContext, data: str = LOCAL_STATUS_MESSAGE):
    ctx.write_file("status.log", data)


def write_config_check_local(ctx: FlareContext, data: str = LOCAL_CONFIG_CHECK_MESSAGE):
    ctx.write_file("config-check.log", data)


def write_status_file(ctx: FlareContext) -> Optional[str]:
    data, reason = _snapshot_or_fallback(ctx.collaborators.status, "status", LOCAL_STATUS_MESSAGE)
    ctx.write_file("status.log", data)
    return reason


def write_config_check(ctx: FlareContext) -> Optional[str]:
    data, reason = _snapshot_or_fallback(ctx.collaborators.config_check, "config check", LOCAL_CONFIG_CHECK_MESSAGE)
    ctx.write_file("config-check.log", data)
    return reason


def write_diagnose(ctx: FlareContext):
    ctx.write_file("diagnose.log", _require(ctx.collaborators.diagnose, "diagnose").snapshot())


def write_secrets(ctx: FlareContext) -> Optional[str]:
    """The secrets backend error, if any, is itself the useful payload."""
    try:
        data = _require(ctx.collaborators.secrets, "secrets").snapshot()
        reason = None
    except Exception as e:
        data = str(e).encode("utf-8")
        reason = str(e)
    ctx.write_file("secrets.log", data)
    return reason


def write_health(ctx: FlareContext):
    status = _require(ctx.collaborators.health, "health").snapshot().sorted()
    ctx.write_file("health.yaml", yaml.safe_dump(status.model_dump(), default_flow_style=False))
