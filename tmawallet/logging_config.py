"""
Logging setup.

Library modules log through ``logging.getLogger(__name__)``. ``setup_logging``
renders those records with structlog: JSON lines by default, a console
renderer at DEBUG. Every line carries the wallet context the session binds
(bundle tag and status), and key material passed as ``extra`` is masked.
"""

import logging
import sys
from typing import Any, Optional

import structlog

from .config import settings


WALLET_CONTEXT_KEYS = ("wallet_bundle", "wallet_status")

SECRET_FIELDS = frozenset({
    "client_secret_key",
    "intermediary_key",
    "private_key",
    "host_session_token",
})


def bind_wallet_context(bundle_tag: Optional[str], status: str) -> None:
    """Attach the current bundle tag and session status to later log lines."""
    structlog.contextvars.bind_contextvars(wallet_bundle=bundle_tag, wallet_status=status)


def clear_wallet_context() -> None:
    structlog.contextvars.unbind_contextvars(*WALLET_CONTEXT_KEYS)


def redact_secrets(logger: Any, method_name: str, event_dict: dict) -> dict:
    for key in SECRET_FIELDS & event_dict.keys():
        event_dict[key] = "<redacted>"
    return event_dict


def setup_logging(log_level: Optional[str] = None, *, json_logs: Optional[bool] = None) -> None:
    """Route stdlib logging through structlog on stderr.

    Args:
        log_level: Override log level (default: from settings.log_level)
        json_logs: Force JSON or console output (default: console only at DEBUG)
    """
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)
    if json_logs is None:
        json_logs = level != logging.DEBUG

    pre_chain = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.ExtraAdder(),
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
    ]

    if json_logs:
        render = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        render = [structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *render],
    )

    # stdout belongs to CLI output
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in ("httpcore", "httpx"):
        logging.getLogger(name).setLevel(logging.WARNING)
