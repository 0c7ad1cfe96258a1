"""
Configuration: environment variables and optional config file (JSON).
CLI arguments override config file override env vars.
"""
import json
import logging
import os
from typing import Any

from core.constants import ORG_DOMAIN_MODES, OUTPUT_FORMATS

logger = logging.getLogger("spoofcheck.config")

BOOL_KEYS = ("verbose", "quiet", "no_color", "exit_code")
STR_KEYS = ("output_dir", "log_file")
FLOAT_KEYS = ("timeout_seconds", "dns_timeout")
INT_KEYS = ("max_depth", "max_lookups")


def _env_bool(name: str, default: bool = False) -> bool:
    v = os.environ.get(name, "").strip().lower()
    if v in ("1", "true", "yes", "on"):
        return True
    if v in ("0", "false", "no", "off"):
        return False
    return default


def _env_float(name: str, default: float | None = None) -> float | None:
    v = os.environ.get(name, "").strip()
    if not v:
        return default
    try:
        return float(v)
    except ValueError:
        logger.warning("%s=%r is not a number; ignoring.", name, v)
        return default


def _env_int(name: str, default: int | None = None) -> int | None:
    v = os.environ.get(name, "").strip()
    if not v:
        return default
    try:
        return int(v)
    except ValueError:
        logger.warning("%s=%r is not an integer; ignoring.", name, v)
        return default


def _env_choice(name: str, choices: tuple[str, ...]) -> str | None:
    v = os.environ.get(name, "").strip().lower()
    if not v:
        return None
    if v not in choices:
        logger.warning("%s=%r is not one of %s; ignoring.", name, v, ", ".join(choices))
        return None
    return v


def _split_list(value: Any) -> list[str]:
    if isinstance(value, (list, tuple)):
        return [str(x).strip() for x in value if str(x).strip()]
    return [x.strip() for x in str(value or "").split(",") if x.strip()]


def load_env_config() -> dict[str, Any]:
    """Load configuration from environment variables (SPOOFCHECK_*)."""
    return {
        "verbose": _env_bool("SPOOFCHECK_VERBOSE", False),
        "quiet": _env_bool("SPOOFCHECK_QUIET", False),
        "no_color": _env_bool("SPOOFCHECK_NO_COLOR", False),
        "output_format": _env_choice("SPOOFCHECK_FORMAT", OUTPUT_FORMATS) or "text",
        "output_dir": os.environ.get("SPOOFCHECK_OUTPUT_DIR", "").strip() or None,
        "log_file": os.environ.get("SPOOFCHECK_LOG_FILE", "").strip() or None,
        "timeout_seconds": _env_float("SPOOFCHECK_TIMEOUT"),
        "dns_timeout": _env_float("SPOOFCHECK_DNS_TIMEOUT"),
        "max_depth": _env_int("SPOOFCHECK_MAX_DEPTH"),
        "max_lookups": _env_int("SPOOFCHECK_MAX_LOOKUPS"),
        "org_domain_mode": _env_choice("SPOOFCHECK_ORG_DOMAIN", ORG_DOMAIN_MODES),
        "nameservers": _split_list(os.environ.get("SPOOFCHECK_NAMESERVERS", "")) or None,
    }


def load_file_config(path: str) -> dict[str, Any]:
    """Load configuration from a JSON file. Returns empty dict on error."""
    if not path or not os.path.isfile(path):
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Could not read config file %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        return {}
    # Map common keys to our names
    mapping = {
        "format": "output_format",
        "output_directory": "output_dir",
        "timeout": "timeout_seconds",
        "org_domain": "org_domain_mode",
        "nameserver": "nameservers",
    }
    out: dict[str, Any] = {}
    for k, v in data.items():
        key = mapping.get(k, k)
        if key in BOOL_KEYS:
            out[key] = bool(v)
        elif key in STR_KEYS:
            out[key] = str(v).strip() if v else None
        elif key in FLOAT_KEYS or key in INT_KEYS:
            try:
                out[key] = (int(v) if key in INT_KEYS else float(v)) if v is not None else None
            except (TypeError, ValueError):
                logger.warning("Config key %s has invalid value %r; skipping.", key, v)
        elif key == "output_format":
            if str(v).lower() in OUTPUT_FORMATS:
                out[key] = str(v).lower()
            else:
                logger.warning("Config key %s has invalid value %r; skipping.", key, v)
        elif key == "org_domain_mode":
            if str(v).lower() in ORG_DOMAIN_MODES:
                out[key] = str(v).lower()
            else:
                logger.warning("Config key %s has invalid value %r; skipping.", key, v)
        elif key == "nameservers":
            out[key] = _split_list(v) or None
        else:
            logger.debug("Unknown config key %s; ignoring.", k)
    return out


def merge_config(env: dict[str, Any], file_cfg: dict[str, Any], cli: dict[str, Any]) -> dict[str, Any]:
    """Merge env (base), then file, then CLI. CLI overrides all."""
    out = dict(env)
    for k, v in file_cfg.items():
        if v is not None:
            out[k] = v
    for k, v in cli.items():
        if v is not None:
            out[k] = v
    return out
