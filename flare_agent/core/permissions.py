import os
import grp
import pwd
import stat
import logging
from typing import Dict, ItemsView
from flare_agent.schemas import FilePermsInfo
from .redacting_writer import write_redacted
from .paths import ensure_parent_dirs_exist

logger = logging.getLogger("flare_agent.permissions")

PERMISSIONS_FILENAME = "permissions.log"


def _owner_name(uid: int) -> str:
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return str(uid)


def _group_name(gid: int) -> str:
    try:
        return grp.getgrgid(gid).gr_name
    except KeyError:
        return str(gid)


class PermissionsTracker:
    """
    Records mode/owner/group of every file shipped in the flare, plus the
    directories above it, so permission problems can be diagnosed remotely.
    """

    def __init__(self):
        self._infos: Dict[str, FilePermsInfo] = {}

    def __len__(self) -> int:
        return len(self._infos)

    def __contains__(self, path: str) -> bool:
        return os.path.abspath(path) in self._infos

    def items(self) -> ItemsView[str, FilePermsInfo]:
        return self._infos.items()

    def add(self, path: str):
        path = os.path.abspath(path)
        if path in self._infos:
            return
        try:
            st = os.stat(path)
        except OSError as e:
            logger.debug(f"Skipping permissions of {path}: {e}")
            return
        self._infos[path] = FilePermsInfo(
            mode=stat.filemode(st.st_mode),
            owner=_owner_name(st.st_uid),
            group=_group_name(st.st_gid),
        )

    def add_parent_chain(self, path: str):
        """Adds every ancestor of `path` up to and including the filesystem root."""
        current = os.path.abspath(path)
        while True:
            parent = os.path.dirname(current)
            if parent == current:
                break
            self.add(parent)
            current = parent

    def render(self) -> str:
        if not self._infos:
            return ""
        width = max(len("File path"), *(len(p) for p in self._infos))
        lines = [
            f"{'File path':<{width}} | {'mode':<10} | {'owner':<10} | {'group':<10} |",
            f"{'-' * width}-|-{'-' * 10}-|-{'-' * 10}-|-{'-' * 10}-|",
        ]
        for path in sorted(self._infos):
            info = self._infos[path]
            lines.append(f"{path:<{width}} | {info.mode:<10} | {info.owner:<10} | {info.group:<10} |")
        return "\n".join(lines) + "\n"

    def commit(self, temp_dir: str, hostname: str, perm: int = 0o777):
        """
        Writes permissions.log into the bundle. The file is written even when
        nothing was recorded: an empty file means the paths could not be stat'ed.
        """
        f = os.path.join(temp_dir, hostname, PERMISSIONS_FILENAME)
        ensure_parent_dirs_exist(f)
        write_redacted(f, self.render(), perm)
