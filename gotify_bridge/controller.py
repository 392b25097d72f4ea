import hmac
import logging

from flask import Flask, Response, request
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from .constants import SERVICE_NAME
from .dispatcher import BatchDispatcher
from .metrics import MetricsState, build_registry
from .services import probe_gotify_health, send_gotify_notification

logger = logging.getLogger(__name__)


def _check_basic_auth(config) -> bool:
    auth = request.authorization
    if auth is None or auth.type != 'basic':
        return False
    user_ok = hmac.compare_digest((auth.username or '').encode(), config.metrics_auth_username.encode())
    pass_ok = hmac.compare_digest((auth.password or '').encode(), config.metrics_auth_password.encode())
    return user_ok and pass_ok


def create_app(config, metrics_state=None, sender=send_gotify_notification, health_probe=probe_gotify_health):
    app = Flask(__name__)
    metrics_state = metrics_state or MetricsState()
    dispatcher = BatchDispatcher(config, metrics_state, sender=sender)
    registry = build_registry(metrics_state, config, health_probe=health_probe)

    app.config['BRIDGE_CONFIG'] = config
    app.config['BRIDGE_METRICS'] = metrics_state

    @app.route('/health', methods=['GET'])
    def health():
        return {'status': 'ok', 'service': SERVICE_NAME}, 200

    @app.route(config.webhook_path, methods=['POST'])
    def webhook():
        app_token = request.args.get('token', '')
        if app_token:
            logger.debug("Gotify application token found in request URI - overriding default token")
            token = app_token
        else:
            logger.debug(f"    request uri ({request.path}) application token (?token=) is missing - falling back to default")
            token = config.gotify_token

        body = request.get_data()
        if config.debug:
            logger.debug(f"bridge: Received request: {request.method} {request.full_path}")
            for name, value in request.headers.items():
                logger.debug(f"bridge:  {name.lower()}: {value}")
            logger.debug(f"bridge: BODY: {body!r}")

        text, status = dispatcher.handle(body, token)
        return Response(text, status=status, mimetype='text/plain')

    @app.route(config.metrics_path, methods=['GET'])
    def metrics():
        if config.metrics_auth_enabled and not _check_basic_auth(config):
            logger.warning(f"Invalid HTTP auth from `{request.remote_addr}`")
            return Response(
                "Invalid username or password",
                status=401,
                mimetype='text/plain',
                headers={'WWW-Authenticate': 'Basic realm="metrics"'},
            )
        return Response(generate_latest(registry), status=200, headers={'Content-Type': CONTENT_TYPE_LATEST})

    return app
