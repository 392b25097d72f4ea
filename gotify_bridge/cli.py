import logging
import sys

from .config import load_config
from .controller import create_app
from .errors import ConfigError

logger = logging.getLogger(__name__)


def configure_logging(debug: bool):
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv=None, environ=None):
    try:
        config = load_config(argv, environ)
    except ConfigError as exc:
        sys.stderr.write(f"ERROR: {exc}\n")
        sys.exit(1)

    configure_logging(config.debug)
    app = create_app(config)

    server_type = "debug " if config.debug else ""
    logger.info(
        f"Starting {server_type}server on http://{config.bind_address}:{config.port}{config.webhook_path} "
        f"translating to {config.gotify_endpoint} ..."
    )
    try:
        # threaded=True: uma thread por requisição; use_reloader=False evita processo duplicado
        app.run(host=config.bind_address, port=config.port, debug=False, threaded=True, use_reloader=False)
    except OSError as exc:
        logger.error(f"Error starting the server: {exc}")
        sys.exit(1)
