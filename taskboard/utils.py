"""
Shared helpers: logger factory and request metadata extraction.
"""
import logging
import sys

from starlette.requests import Request

from taskboard.core import config


_configured = False


def _configure_root() -> None:
    global _configured
    if _configured:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
    root = logging.getLogger("taskboard")
    root.addHandler(handler)
    root.setLevel(config.LOG_LEVEL.upper())
    root.propagate = False
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the ``taskboard`` namespace.

    Modules outside the package (``scripts.*``, ``__main__``) are nested under
    it as well so a single handler and level apply everywhere.
    """
    _configure_root()
    if not name.startswith("taskboard"):
        name = f"taskboard.{name}"
    return logging.getLogger(name)


def get_client_ip(request: Request) -> str:
    """Best-effort client address, honouring reverse proxy headers."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


USER_AGENT_MAX_LENGTH = 255


def get_user_agent(request: Request) -> str | None:
    user_agent = request.headers.get("user-agent")
    if user_agent is None:
        return None
    return user_agent[:USER_AGENT_MAX_LENGTH]
