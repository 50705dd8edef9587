"""Actionable error catalog for mwcontainers."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "command_not_found": {
        "what": "Required command not found: {command}.",
        "next": "Install it and make sure it is on PATH, then retry.",
    },
    "docker_unavailable": {
        "what": "The Docker CLI is not usable on this host.",
        "next": "Install Docker and check that the daemon is running (`docker info`).",
    },
    "no_package_manager": {
        "what": "git is not installed and no supported package manager was found ({managers}).",
        "next": "Install git manually and run the installer again.",
    },
    "dns_address_missing": {
        "what": "Container {name} has no IP address.",
        "next": "Check `docker logs {name}` and the default bridge network.",
    },
    "sentinel_timeout": {
        "what": "Timed out after {timeout}s waiting for '{sentinel}' in the {unit} journal.",
        "next": "Inspect `journalctl -u {unit}` or raise `--timeout`.",
    },
    "log_stream_closed": {
        "what": "The {unit} journal stream ended before '{sentinel}' appeared.",
        "next": "Check that journalctl can read the unit and that the service is enabled.",
    },
    "startup_marker_missing": {
        "what": "MediaWiki did not report a started web server ({marker} missing from the last {unit} log line).",
        "next": "Review the log output above and restart with `mwcontainers restart`.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
