import os
import json
import logging
from typing import Optional, Tuple
import requests
import yaml
from flare_agent.errors import FlareError
from flare_agent.ipc import IPCClient, get_with_deadline
from .base import FlareContext

logger = logging.getLogger("flare_agent.collectors.http")

ROUTINE_DUMP_FILENAME = "go-routine-dump.log"
TELEMETRY_FILENAME = "telemetry.log"
TAGGER_LIST_FILENAME = "tagger-list.json"


def _get(ctx: FlareContext, url: str) -> Tuple[Optional[requests.Response], Optional[str]]:
    """
    Single GET bounded by the configured timeout, no retry.
    Returns (response, None) on 2xx, otherwise (response or None, error text).
    """
    try:
        resp = get_with_deadline(url, ctx.settings.HTTP_TIMEOUT_SECONDS)
    except requests.RequestException as e:
        return None, f"Error retrieving {url}: {e}"
    if not resp.ok:
        return resp, f"Got response {resp.status_code} {resp.reason} from {url}:\n{resp.text}"
    return resp, None


def write_http_call_content(ctx: FlareContext, filename: str, url: str) -> Optional[str]:
    """
    Writes the body of a GET on `url` into `filename`. On failure the error
    text is written instead, so the flare shows what went wrong.
    """
    resp, error = _get(ctx, url)
    if error:
        logger.warning(f"Could not fetch {filename}: {error.splitlines()[0]}")
        ctx.write_file(filename, error)
        return error
    ctx.write_file(filename, resp.content)
    return None


def write_telemetry(ctx: FlareContext) -> Optional[str]:
    return write_http_call_content(ctx, TELEMETRY_FILENAME, ctx.settings.telemetry_url)


def write_stack_traces(ctx: FlareContext) -> Optional[str]:
    return write_http_call_content(ctx, ROUTINE_DUMP_FILENAME, ctx.settings.pprof_url)


def _expvar_file(key: str) -> str:
    return os.path.join("expvar", key.replace(os.sep, "_"))


def write_agent_vars(ctx: FlareContext) -> Optional[str]:
    """One YAML file per top-level runtime variable exposed by the agent."""
    resp, error = _get(ctx, ctx.settings.expvar_url)
    if error is None:
        try:
            variables = resp.json()
        except ValueError as e:
            error = f"Error decoding {ctx.settings.expvar_url} response: {e}"
        else:
            if not isinstance(variables, dict):
                error = f"Unexpected {type(variables).__name__} from {ctx.settings.expvar_url}, expected an object"
    if error:
        ctx.write_file(_expvar_file("agent.log"), error)
        return error

    for key, value in variables.items():
        ctx.write_file(_expvar_file(f"{key}.yaml"), yaml.safe_dump(value, default_flow_style=False))
    return None


def write_trace_agent_vars(ctx: FlareContext) -> Optional[str]:
    target = _expvar_file("trace-agent")
    try:
        resp = get_with_deadline(ctx.settings.trace_agent_vars_url, ctx.settings.HTTP_TIMEOUT_SECONDS)
    except requests.RequestException as e:
        error = f"Error retrieving vars: {e}"
        ctx.write_file(target, error)
        return error

    if resp.status_code != 200:
        error = f"Got response {resp.status_code} {resp.reason} from /debug/vars:\n{resp.text}"
        ctx.write_file(target, error)
        return error

    try:
        all_vars = resp.json()
    except ValueError as e:
        raise FlareError(f"error decoding trace-agent /debug/vars response: {e}")
    ctx.write_file(target, yaml.safe_dump(all_vars, default_flow_style=False))
    return None


def write_expvar(ctx: FlareContext) -> Optional[str]:
    """Agent and trace-agent vars are collected independently of each other."""
    errors = []
    for collect in (write_agent_vars, write_trace_agent_vars):
        try:
            error = collect(ctx)
        except Exception as e:
            logger.error(f"Could not write {collect.__name__}: {e}")
            error = str(e)
        if error:
            errors.append(error)
    return "; ".join(errors) if errors else None


def write_system_probe_stats(ctx: FlareContext) -> Optional[str]:
    target = _expvar_file("system-probe")
    resp, error = _get(ctx, ctx.settings.SYSTEM_PROBE_STATS_URL)
    if error is None:
        try:
            stats = resp.json()
        except ValueError as e:
            error = f"Error decoding system-probe stats: {e}"
    if error:
        ctx.write_file(target, error)
        return error
    ctx.write_file(target, yaml.safe_dump(stats, default_flow_style=False))
    return None


def write_tagger_list(ctx: FlareContext) -> Optional[str]:
    url = ctx.settings.tagger_list_url
    try:
        resp = IPCClient(ctx.settings).get(url)
    except requests.RequestException as e:
        error = f"Error retrieving {url}: {e}"
        ctx.write_file(TAGGER_LIST_FILENAME, error)
        return error
    if not resp.ok:
        error = f"Got response {resp.status_code} {resp.reason} from {url}:\n{resp.text}"
        ctx.write_file(TAGGER_LIST_FILENAME, error)
        return error

    # Pretty print JSON output, raw bytes if the body is not JSON
    try:
        data = json.dumps(json.loads(resp.content), indent="\t").encode("utf-8")
    except ValueError:
        data = resp.content
    ctx.write_file(TAGGER_LIST_FILENAME, data)
    return None
