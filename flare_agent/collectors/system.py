import os
from typing import List, Mapping, Optional
from flare_agent.errors import CollaboratorError
from .base import FlareContext, SnapshotProvider

NO_ENV_VARS_MESSAGE = "No allowed environment variable found"


def allowed_env_vars(environ: Mapping[str, str], prefixes: List[str], allowlist: List[str]) -> List[str]:
    allowed = set(allowlist)
    found = []
    for name in sorted(environ):
        if name in allowed or any(name.startswith(p) for p in prefixes):
            found.append(f"{name}={environ[name]}")
    return found


def write_envvars(ctx: FlareContext, environ: Optional[Mapping[str, str]] = None):
    environ = os.environ if environ is None else environ
    found = allowed_env_vars(environ, ctx.settings.ENV_VAR_PREFIXES, ctx.settings.ENV_VAR_ALLOWLIST)
    if not found:
        ctx.write_file("envvars.log", NO_ENV_VARS_MESSAGE + "\n")
        return
    lines = ["Found allowed environment variables:"] + [f" - {v}" for v in found]
    ctx.write_file("envvars.log", "\n".join(lines) + "\n")


def _write_snapshot(ctx: FlareContext, provider: Optional[SnapshotProvider], filename: str):
    if provider is None:
        raise CollaboratorError(f"no provider configured for {filename}")
    ctx.write_file(filename, provider.snapshot())


def write_docker_self_inspect(ctx: FlareContext):
    _write_snapshot(ctx, ctx.collaborators.docker_self_inspect, "docker_inspect.log")


def write_docker_ps(ctx: FlareContext):
    _write_snapshot(ctx, ctx.collaborators.docker_ps, "docker_ps.log")
