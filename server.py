"""
Development entry point: ``python server.py``.

Host, port and auto-reload come from the environment (see taskboard.core.config).
"""
import uvicorn  # type: ignore

from taskboard.core import config
from taskboard.utils import get_logger

log = get_logger(__name__)

if __name__ == "__main__":
    log.info("Running taskboard on %s:%d (reload=%s)", config.SERVER_HOST, config.SERVER_PORT, config.SERVER_RELOAD)
    uvicorn.run("taskboard.main:app", reload=config.SERVER_RELOAD, host=config.SERVER_HOST, port=config.SERVER_PORT)
