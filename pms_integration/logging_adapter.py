"""
Structured logging for the PMS integration layer.
Every module logs through get_safe_logger(); secrets are masked before rendering.
"""

import logging
import sys
from typing import Any, Dict, Optional
from urllib.parse import urlparse, parse_qs, urlencode, urlunparse

import structlog

SENSITIVE_KEYS = {
    "api_key",
    "apikey",
    "token",
    "secret",
    "password",
    "authorization",
    "signature",
    "access_token",
    "client_secret",
    "credential",
    "credential_encrypted",
}

REDACTED = "<REDACTED>"

_configured = False


def _is_sensitive(key: str) -> bool:
    lowered = key.lower().replace("-", "_")
    return lowered in SENSITIVE_KEYS or lowered.endswith("_token") or lowered.endswith("_secret")


def redact_secrets(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """structlog processor masking secret-looking fields"""
    for key in list(event_dict.keys()):
        if _is_sensitive(key):
            event_dict[key] = REDACTED
        elif isinstance(event_dict[key], dict):
            event_dict[key] = {
                k: (REDACTED if _is_sensitive(str(k)) else v)
                for k, v in event_dict[key].items()
            }
    return event_dict


def configure_logging(level: str = "INFO", json_logs: bool = True) -> None:
    """
    Configure structlog and the stdlib root handler.

    Safe to call more than once; the last call wins.
    """
    global _configured

    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level, force=True)

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            redact_secrets,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )
    _configured = True


def get_safe_logger(name: Optional[str] = None) -> Any:
    """
    Get a structlog logger for a component.

    Usage:
        logger = get_safe_logger("pms.transport")
        logger.info("request_completed", status_code=200)
    """
    if not _configured:
        configure_logging()
    return structlog.get_logger(name) if name else structlog.get_logger()


def sanitize_url(url: str) -> str:
    """
    Sanitize URL for logging by removing sensitive query parameters

    Args:
        url: URL to sanitize

    Returns:
        Sanitized URL safe for logging
    """
    parsed = urlparse(url)
    query_params = parse_qs(parsed.query, keep_blank_values=True)

    sanitized_params = {
        param: [REDACTED] if _is_sensitive(param) or param.lower() in {"key", "auth", "sid"} else values
        for param, values in query_params.items()
    }

    return urlunparse(
        (
            parsed.scheme,
            parsed.netloc,
            parsed.path,
            parsed.params,
            urlencode(sanitized_params, doseq=True),
            parsed.fragment,
        )
    )
