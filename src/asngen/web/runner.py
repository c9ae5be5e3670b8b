"""Run the web API with uvicorn."""

import copy

import structlog
import uvicorn
from uvicorn.config import LOGGING_CONFIG

from asngen.app import App
from asngen.config import Config
from asngen.web.server import create_fastapi_app

logger = structlog.get_logger(__name__)


def build_log_config(debug: bool) -> dict:
    """Uvicorn logging config with compact access lines and the configured level."""
    log_config = copy.deepcopy(LOGGING_CONFIG)
    log_config["formatters"]["access"]["fmt"] = '%(asctime)s - "%(request_line)s" %(status_code)s'
    log_config["formatters"]["default"]["fmt"] = "%(asctime)s - %(levelname)s - %(message)s"
    level = "DEBUG" if debug else "INFO"
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        log_config["loggers"].setdefault(name, {})["level"] = level
    return log_config


def run_server(app: App, config: Config) -> None:
    """Serve the ASN API on the configured host and port until interrupted."""
    fastapi_app = create_fastapi_app(app, config)
    logger.info("server_starting", host=config.host, port=config.port, prefix=config.prefix)
    uvicorn.run(
        fastapi_app,
        host=config.host,
        port=config.port,
        log_config=build_log_config(config.debug),
        access_log=True,
    )
