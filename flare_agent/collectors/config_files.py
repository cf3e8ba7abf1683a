import os
import logging
from typing import Dict, Optional
import yaml
from flare_agent.core.paths import get_system_probe_path, is_config_file
from .base import FlareContext

logger = logging.getLogger("flare_agent.collectors.config_files")

SearchPaths = Dict[str, str]


def walk_config_file_paths(ctx: FlareContext, search_paths: SearchPaths) -> int:
    """
    Mirrors every YAML file found under each search root into
    etc/confd/<prefix>/<relative path>. Returns the number of files copied.
    """
    copied = 0
    for prefix, root in search_paths.items():
        if not root:
            continue
        abs_root = os.path.abspath(root)
        for dirpath, _, files in os.walk(abs_root):
            for name in sorted(files):
                src = os.path.join(dirpath, name)
                if not os.path.isfile(src) or not is_config_file(name):
                    continue
                rel = os.path.relpath(src, abs_root)
                ctx.copy_file(src, os.path.join("etc", "confd", prefix, rel))
                ctx.perms.add(src)
                ctx.perms.add_parent_chain(src)
                copied += 1
    return copied


def create_config_files(ctx: FlareContext, file_path: str):
    """Copies a single config file to etc/<basename>. Raises if it does not exist."""
    if not os.path.isfile(file_path):
        raise FileNotFoundError(f"config file not found: {file_path}")
    ctx.copy_file(file_path, os.path.join("etc", os.path.basename(file_path)))
    ctx.perms.add(file_path)


def write_runtime_config(ctx: FlareContext):
    store = ctx.collaborators.config_store
    all_settings = store.all_settings() if store is not None else {}
    ctx.write_file("runtime_config_dump.yaml", yaml.safe_dump(all_settings, default_flow_style=False))


def write_config_files(ctx: FlareContext, search_paths: Optional[SearchPaths] = None):
    write_runtime_config(ctx)
    walk_config_file_paths(ctx, search_paths if search_paths is not None else ctx.settings.search_paths())

    store = ctx.collaborators.config_store
    used = store.config_file_used() if store is not None else None
    if not used:
        return

    # zip up the config file that was actually used
    create_config_files(ctx, used)
    # best effort for system-probe.yaml, expected next to the main config
    try:
        create_config_files(ctx, get_system_probe_path(used))
    except OSError as e:
        logger.warning(f"could not write system-probe.yaml, system-probe might not be configured, or is in a different directory: {e}")
