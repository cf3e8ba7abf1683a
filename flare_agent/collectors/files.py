import os
from flare_agent.errors import FlareError
from .base import FlareContext


def _copy_from(ctx: FlareContext, original_path: str, target: str):
    # Checked first so a missing source leaves no empty file behind
    if not os.path.isfile(original_path):
        raise FileNotFoundError(f"no such file: {original_path}")
    ctx.copy_file(original_path, target)


def write_registry_json(ctx: FlareContext):
    _copy_from(ctx, os.path.join(ctx.settings.RUN_PATH, "registry.json"), "registry.json")


def write_version_history(ctx: FlareContext):
    _copy_from(ctx, os.path.join(ctx.settings.RUN_PATH, "version-history.json"), "version-history.json")


def write_install_info(ctx: FlareContext):
    store = ctx.collaborators.config_store
    used = store.config_file_used() if store is not None else None
    if not used:
        raise FlareError("no config file in use, cannot locate install_info")
    _copy_from(ctx, os.path.join(os.path.dirname(used), "install_info"), "install_info")
