import argparse
import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence
from urllib.parse import urlsplit

from .constants import (
    DEFAULT_BIND_ADDRESS,
    DEFAULT_GOTIFY_ENDPOINT,
    DEFAULT_MESSAGE_ANNOTATION,
    DEFAULT_METRICS_NAMESPACE,
    DEFAULT_METRICS_PATH,
    DEFAULT_PORT,
    DEFAULT_PRIORITY,
    DEFAULT_PRIORITY_ANNOTATION,
    DEFAULT_TIMEOUT,
    DEFAULT_TITLE_ANNOTATION,
    DEFAULT_WEBHOOK_PATH,
    GOTIFY_MESSAGE_SUFFIX,
    VERSION,
)
from .errors import ConfigError
from .utils import env_flag, parse_timeout

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BridgeConfig:
    gotify_endpoint: str = DEFAULT_GOTIFY_ENDPOINT
    gotify_token: str = ""
    bind_address: str = DEFAULT_BIND_ADDRESS
    port: int = DEFAULT_PORT
    webhook_path: str = DEFAULT_WEBHOOK_PATH
    timeout: float = 5.0
    title_annotation: str = DEFAULT_TITLE_ANNOTATION
    message_annotation: str = DEFAULT_MESSAGE_ANNOTATION
    priority_annotation: str = DEFAULT_PRIORITY_ANNOTATION
    default_priority: int = DEFAULT_PRIORITY
    extended_details: bool = False
    dispatch_errors: bool = False
    metrics_namespace: str = DEFAULT_METRICS_NAMESPACE
    metrics_path: str = DEFAULT_METRICS_PATH
    metrics_auth_username: str = ""
    metrics_auth_password: str = ""
    debug: bool = False

    @property
    def metrics_auth_enabled(self) -> bool:
        return bool(self.metrics_auth_username and self.metrics_auth_password)


def normalize_gotify_endpoint(endpoint: str) -> str:
    """Garante que o endpoint termine em /message (sem barra dupla) e seja uma URL absoluta."""
    endpoint = (endpoint or "").strip()
    if not endpoint.endswith(GOTIFY_MESSAGE_SUFFIX):
        logger.warning(
            f"/message not at the end of the gotify_endpoint parameter ({endpoint}). Automatically appending it."
        )
        endpoint = endpoint.rstrip("/") + GOTIFY_MESSAGE_SUFFIX
        logger.warning(f"New gotify_endpoint: {endpoint}")

    try:
        parsed = urlsplit(endpoint)
        parsed.port
    except ValueError as exc:
        raise ConfigError(f"invalid gotify endpoint: {exc}") from exc
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigError(f"invalid gotify endpoint: {endpoint!r} is not an absolute http(s) URL")
    return endpoint


def _env_int(environ, name, default):
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


def build_parser(environ: Mapping[str, str]) -> argparse.ArgumentParser:
    env = environ.get
    parser = argparse.ArgumentParser(
        prog="alertmanager-gotify-bridge",
        description="Receives Alertmanager webhooks and forwards them to Gotify",
    )
    parser.add_argument("--version", action="version", version=VERSION)
    parser.add_argument("--gotify_endpoint", default=env("GOTIFY_ENDPOINT", DEFAULT_GOTIFY_ENDPOINT),
                        help="Full path to the Gotify message endpoint ($GOTIFY_ENDPOINT)")
    parser.add_argument("--bind_address", default=env("BIND_ADDRESS", DEFAULT_BIND_ADDRESS),
                        help="The address the bridge will listen on ($BIND_ADDRESS)")
    parser.add_argument("--port", type=int, default=_env_int(environ, "PORT", DEFAULT_PORT),
                        help="The port the bridge will listen on ($PORT)")
    parser.add_argument("--webhook_path", default=env("WEBHOOK_PATH", DEFAULT_WEBHOOK_PATH),
                        help="The URL path to handle requests on ($WEBHOOK_PATH)")
    parser.add_argument("--timeout", default=env("TIMEOUT", DEFAULT_TIMEOUT),
                        help="How long to wait when connecting to gotify, e.g. 5s or 1500ms ($TIMEOUT)")
    parser.add_argument("--title_annotation", default=env("TITLE_ANNOTATION", DEFAULT_TITLE_ANNOTATION),
                        help="Annotation holding the title of the alert ($TITLE_ANNOTATION)")
    parser.add_argument("--message_annotation", default=env("MESSAGE_ANNOTATION", DEFAULT_MESSAGE_ANNOTATION),
                        help="Annotation holding the alert message ($MESSAGE_ANNOTATION)")
    parser.add_argument("--priority_annotation", default=env("PRIORITY_ANNOTATION", DEFAULT_PRIORITY_ANNOTATION),
                        help="Annotation holding the priority of the alert ($PRIORITY_ANNOTATION)")
    parser.add_argument("--default_priority", type=int,
                        default=_env_int(environ, "DEFAULT_PRIORITY", DEFAULT_PRIORITY),
                        help="Priority used when the alert has no priority annotation ($DEFAULT_PRIORITY)")
    parser.add_argument("--metrics_auth_username", default=env("AUTH_USERNAME", ""),
                        help="Username for metrics interface basic auth ($AUTH_USERNAME and $AUTH_PASSWORD)")
    parser.add_argument("--metrics_namespace", default=env("METRICS_NAMESPACE", DEFAULT_METRICS_NAMESPACE),
                        help="Metrics Namespace ($METRICS_NAMESPACE)")
    parser.add_argument("--metrics_path", default=env("METRICS_PATH", DEFAULT_METRICS_PATH),
                        help="Path under which to expose metrics for the bridge ($METRICS_PATH)")
    parser.add_argument("--extended_details", action=argparse.BooleanOptionalAction,
                        default=env_flag(env("EXTENDED_DETAILS")),
                        help="Present alerts as HTML with colorized status (FIR|RES), start time and "
                             "a link to the generator of the alert ($EXTENDED_DETAILS)")
    parser.add_argument("--dispatch_errors", action=argparse.BooleanOptionalAction,
                        default=env_flag(env("DISPATCH_ERRORS")),
                        help="Dispatch an error notification for faulty templating or missing "
                             "annotations to help debugging ($DISPATCH_ERRORS)")
    parser.add_argument("--debug", action=argparse.BooleanOptionalAction,
                        default=env_flag(env("DEBUG_MODE")),
                        help="Enable debug output of the server ($DEBUG_MODE)")
    return parser


def load_config(argv: Optional[Sequence[str]] = None, environ: Optional[Mapping[str, str]] = None) -> BridgeConfig:
    """
    Monta a configuração imutável do processo: flag > variável de ambiente > default.
    Levanta ConfigError para endpoint inválido, token ausente ou valores inválidos.
    """
    environ = os.environ if environ is None else environ
    args = build_parser(environ).parse_args(argv)

    token = environ.get("GOTIFY_TOKEN", "")
    if not token:
        raise ConfigError("The token for Gotify API must be set in the environment variable GOTIFY_TOKEN")

    try:
        timeout = parse_timeout(args.timeout)
    except ValueError as exc:
        raise ConfigError(f"invalid timeout: {exc}") from exc

    for name in ("webhook_path", "metrics_path"):
        if not getattr(args, name).startswith("/"):
            raise ConfigError(f"{name} must start with '/', got {getattr(args, name)!r}")

    return BridgeConfig(
        gotify_endpoint=normalize_gotify_endpoint(args.gotify_endpoint),
        gotify_token=token,
        bind_address=args.bind_address,
        port=args.port,
        webhook_path=args.webhook_path,
        timeout=timeout,
        title_annotation=args.title_annotation,
        message_annotation=args.message_annotation,
        priority_annotation=args.priority_annotation,
        default_priority=args.default_priority,
        extended_details=args.extended_details,
        dispatch_errors=args.dispatch_errors,
        metrics_namespace=args.metrics_namespace,
        metrics_path=args.metrics_path,
        metrics_auth_username=args.metrics_auth_username,
        metrics_auth_password=environ.get("AUTH_PASSWORD", ""),
        debug=args.debug,
    )
