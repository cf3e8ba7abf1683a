import os
from typing import List, Optional, Union
from .replacers import BUILTIN_REPLACERS, OTHER_API_KEYS_REPLACER, Replacer, scrub

class RedactingWriter:
    """
    File sink that scrubs credentials out of every write before it reaches disk.

    Each call to `write` is one scrubbing unit: patterns are applied to the whole
    buffer so a secret is never split across two writes. The parent directory
    must already exist; use `ensure_parent_dirs_exist` first.
    """

    def __init__(self, path: str, perm: int = 0o777, truncate: bool = True):
        self.path = path
        self.replacers: List[Replacer] = list(BUILTIN_REPLACERS)
        flags = os.O_WRONLY | os.O_CREAT | (os.O_TRUNC if truncate else os.O_APPEND)
        fd = os.open(path, flags, perm)
        self._file = os.fdopen(fd, "wb")

    def register_replacer(self, replacer: Replacer):
        self.replacers.append(replacer)

    @property
    def closed(self) -> bool:
        return self._file is None

    def write(self, data: bytes) -> int:
        if self._file is None:
            raise ValueError(f"write to closed redacting writer: {self.path}")
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._file.write(scrub(data, self.replacers))
        return len(data)

    def write_from_file(self, src: str) -> int:
        with open(src, "rb") as f:
            content = f.read()
        return self.write(content)

    def close(self):
        if self._file is None:
            return
        try:
            self._file.flush()
        finally:
            self._file.close()
            self._file = None

    def __enter__(self) -> "RedactingWriter":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def new_redacting_writer(path: str, perm: int = 0o777, truncate: bool = True) -> RedactingWriter:
    """
    Opens a writer with the built-in scrubbers plus the rule for other services'
    api_key fields, which the built-in set does not cover.
    """
    w = RedactingWriter(path, perm, truncate)
    w.register_replacer(OTHER_API_KEYS_REPLACER)
    return w


def write_redacted(path: str, data: Union[str, bytes], perm: Optional[int] = None) -> int:
    """Opens, writes and closes in one step. The parent directory must exist."""
    with new_redacting_writer(path, perm if perm is not None else 0o777) as w:
        return w.write(data)
