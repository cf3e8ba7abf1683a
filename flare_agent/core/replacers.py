import re
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Pattern

@dataclass
class Replacer:
    """
    A scrubbing rule applied to a whole write buffer.
    `hints` are plain substrings; when set, the regex only runs if one of them occurs.
    Either `repl` (a re template) or `repl_func` (applied to the matched span) is used.
    """
    regex: Pattern[bytes]
    repl: Optional[bytes] = None
    repl_func: Optional[Callable[[bytes], bytes]] = None
    hints: List[bytes] = field(default_factory=list)

    def apply(self, data: bytes) -> bytes:
        if self.hints and not any(h in data for h in self.hints):
            return data
        if self.repl_func is not None:
            return self.regex.sub(lambda m: self.repl_func(m.group(0)), data)
        return self.regex.sub(self.repl or b"", data)


# A key match only starts at the first blank of a run or at a word start.
_KEY_START = rb"(?<!\s)(\s*(?<!\w)"

def _yaml_key_part(part: bytes) -> Pattern[bytes]:
    return re.compile(_KEY_START + rb"\w*" + part + rb"\w*\s*:).+")

def _yaml_key_ending(part: bytes) -> Pattern[bytes]:
    return re.compile(_KEY_START + rb"\w*" + part + rb"\s*:).+")

def _yaml_key(key: bytes) -> Pattern[bytes]:
    return re.compile(_KEY_START + key + rb"\s*:).+")


API_KEY_REPLACER = Replacer(
    regex=re.compile(rb"\b[a-fA-F0-9]{27}([a-fA-F0-9]{5})\b"),
    repl=b"*" * 27 + rb"\1",
)

APP_KEY_REPLACER = Replacer(
    regex=re.compile(rb"\b[a-fA-F0-9]{35}([a-fA-F0-9]{5})\b"),
    repl=b"*" * 35 + rb"\1",
)

URI_PASSWORD_REPLACER = Replacer(
    regex=re.compile(rb"((?<![A-Za-z])[A-Za-z]+\:\/\/|\b)([A-Za-z0-9_]+)\:([^\s-]+)\@"),
    repl=rb"\1\2:********@",
)

PASSWORD_REPLACER = Replacer(
    regex=_yaml_key_part(rb"(pass(word)?|pwd)"),
    repl=rb"\1 ********",
    hints=[b"pass", b"pwd"],
)

TOKEN_REPLACER = Replacer(
    regex=_yaml_key_ending(rb"token"),
    repl=rb"\1 ********",
    hints=[b"token"],
)

SNMP_REPLACER = Replacer(
    regex=_yaml_key(rb"(community_string|authKey|privKey)"),
    repl=rb"\1 ********",
    hints=[b"community_string", b"authKey", b"privKey"],
)

CERT_REPLACER = Replacer(
    regex=re.compile(rb"-----BEGIN (?:.*)-----[A-Za-z0-9=\+\/\s]*-----END (?:.*)-----"),
    repl=b"********",
    hints=[b"BEGIN"],
)

# Order matters: the agent's own keys are masked before the generic rules run.
BUILTIN_REPLACERS = [
    API_KEY_REPLACER,
    APP_KEY_REPLACER,
    URI_PASSWORD_REPLACER,
    PASSWORD_REPLACER,
    TOKEN_REPLACER,
    SNMP_REPLACER,
    CERT_REPLACER,
]

# api_key fields of other services (e.g. PowerDNS). `*` is excluded from the
# value class so an already masked key is left alone.
OTHER_API_KEYS_REPLACER = Replacer(
    regex=re.compile(rb'api_key\s*:\s*[a-zA-Z0-9\\/\^\]\[\(\){}!|%:;"~><=#@$_\-\+]+'),
    repl_func=lambda b: b"api_key: ********",
    hints=[b"api_key"],
)


def scrub(data: bytes, replacers: Iterable[Replacer]) -> bytes:
    """Applies every replacer, in order, to the full buffer."""
    for replacer in replacers:
        data = replacer.apply(data)
    return data
