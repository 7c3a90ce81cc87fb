"""Application entry point for SolNews backend server."""

import structlog

from solnews.app import App
from solnews.config import Config
from solnews.logging import setup_logging
from solnews.web.runner import run_server

logger = structlog.get_logger(__name__)


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    logger.info("solnews_starting", host=config.host, port=config.port, admins=len(config.admin_discord_ids))
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
