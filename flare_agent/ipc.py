import logging
import threading
import warnings
from typing import Optional
import requests
import urllib3
from flare_agent.config import FlareSettings

logger = logging.getLogger("flare_agent.ipc")


class DeadlineExceeded(requests.Timeout):
    """The whole exchange, body included, did not finish in time."""
    pass


def get_with_deadline(url: str, timeout: float, **kwargs) -> requests.Response:
    """
    GET bounded by `timeout` seconds overall, body included. The body is read
    on a daemon thread; past the deadline the response is closed and
    DeadlineExceeded raised. The returned response has its content loaded.
    """
    responses = []
    errors = []

    def fetch():
        try:
            resp = requests.get(url, timeout=timeout, stream=True, **kwargs)
            responses.append(resp)
            # loads the body
            resp.content
        except Exception as e:
            errors.append(e)

    worker = threading.Thread(target=fetch, name=f"flare-get {url}", daemon=True)
    worker.start()
    worker.join(timeout)
    if worker.is_alive():
        for resp in responses:
            resp.close()
        raise DeadlineExceeded(f"timeout after {timeout:g}s")
    if errors:
        raise errors[0]
    return responses[0]


class IPCClient:
    """Talks to the agent's local command API, authenticated with the agent auth token."""

    def __init__(self, settings: FlareSettings):
        self.settings = settings
        self.base_url = settings.ipc_base_url
        self.timeout = settings.HTTP_TIMEOUT_SECONDS

    def auth_token(self) -> Optional[str]:
        try:
            with open(self.settings.AUTH_TOKEN_FILE, "r") as f:
                return f.read().strip() or None
        except OSError as e:
            logger.debug(f"Auth token unavailable: {e}")
            return None

    def headers(self) -> dict:
        token = self.auth_token()
        return {"Authorization": f"Bearer {token}"} if token else {}

    def get(self, path_or_url: str, **kwargs) -> requests.Response:
        """GET on the IPC API. The agent serves a self-signed certificate, so it is not verified."""
        url = path_or_url if "://" in path_or_url else f"{self.base_url}{path_or_url}"
        final_kwargs = {"headers": self.headers(), "verify": False, **kwargs}
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", urllib3.exceptions.InsecureRequestWarning)
            return get_with_deadline(url, self.timeout, **final_kwargs)
