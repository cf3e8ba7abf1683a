import os
import re
import tempfile
from datetime import datetime

# Maximum size for the root directory name
DIRECTORY_NAME_MAX_SIZE = 32

# Filter to clean the directory name from invalid file name characters
_DIRECTORY_NAME_FILTER = re.compile(r"[^a-zA-Z0-9_-]+")

# Match .yaml and .yml to ship configuration files in the flare
CONFIG_FILE_EXT_RX = re.compile(r"(?i)\.ya?ml")

ARCHIVE_PREFIX = "datadog-agent"


def clean_directory_name(name: str) -> str:
    filtered = _DIRECTORY_NAME_FILTER.sub("_", name)
    return filtered[:DIRECTORY_NAME_MAX_SIZE]


def ensure_parent_dirs_exist(path: str):
    os.makedirs(os.path.dirname(path), exist_ok=True)


def get_first_suffix(name: str) -> str:
    """Extension before the final one: `agent.log.1` -> `.log`."""
    return os.path.splitext(os.path.splitext(name)[0])[1]


def is_config_file(name: str) -> bool:
    ext = os.path.splitext(name)[1]
    if ext == ".example":
        return False
    return bool(CONFIG_FILE_EXT_RX.search(get_first_suffix(name)) or CONFIG_FILE_EXT_RX.search(ext))


def is_log_file(name: str) -> bool:
    return os.path.splitext(name)[1] == ".log" or get_first_suffix(name) == ".log"


def create_temp_dir() -> str:
    """Creates the workspace; the name starts with 10 random bytes, hex-encoded."""
    return tempfile.mkdtemp(prefix=os.urandom(10).hex())


def get_archive_path(now: datetime = None) -> str:
    now = now or datetime.now()
    file_name = f"{ARCHIVE_PREFIX}-{now.strftime('%Y-%m-%d-%H-%M-%S')}.zip"
    return os.path.join(tempfile.gettempdir(), file_name)


def get_system_probe_path(config_file_path: str) -> str:
    """system-probe.yaml is expected next to the main agent config."""
    return os.path.join(os.path.dirname(config_file_path), "system-probe.yaml")
