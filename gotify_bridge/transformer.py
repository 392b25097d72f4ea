import logging
import re
from typing import Optional, Tuple
from urllib.parse import urlsplit

from .constants import (
    ERROR_NOTIFICATION_TEMPLATE,
    ERROR_NOTIFICATION_TITLE,
    SOURCE_LINK_TEMPLATE,
    STARTS_AT_DISPLAY_LENGTH,
    STARTS_AT_TEMPLATE,
    STATUS_MARKERS,
)
from .errors import MissingAnnotationError, TemplateRenderError
from .models import InboundAlert, OutboundNotification
from .templating import render_template

logger = logging.getLogger(__name__)

_INTEGER_RE = re.compile(r'^[+-]?\d+$')


def resolve_external_url(alert: InboundAlert) -> Optional[str]:
    """URL externa usada por externalURL()/pathPrefix(); externalURL com fallback para generatorURL."""
    candidate = alert.external_url or alert.generator_url
    if not candidate:
        return None
    try:
        parsed = urlsplit(candidate)
        # Acessar a porta valida o valor (levanta ValueError se inválido)
        parsed.port
    except ValueError as exc:
        logger.warning(f"External URL Format Error: {exc}")
        return None
    return parsed.geturl()


def render_annotation(alert: InboundAlert, key: str, external_url: Optional[str]) -> str:
    if key not in alert.annotations:
        raise MissingAnnotationError(key)
    return render_template(alert.annotations[key], alert, external_url)


def parse_priority(alert: InboundAlert, key: str, default: int) -> int:
    if key not in alert.annotations:
        logger.debug(f"    priority annotation ({key}) missing - falling back to default ({default})")
        return default
    raw = alert.annotations[key].strip()
    if not _INTEGER_RE.match(raw):
        logger.debug(f"    priority annotation ({key}) is not an integer ({raw!r}) - using default ({default})")
        return default
    return int(raw)


def build_error_message(error, raw_body) -> str:
    if isinstance(raw_body, bytes):
        raw_body = raw_body.decode('utf-8', errors='replace')
    return ERROR_NOTIFICATION_TEMPLATE.format(error=error, payload=raw_body or "")


def transform_alert(alert: InboundAlert, config, raw_body=b"") -> Tuple[OutboundNotification, bool, str]:
    """
    Converte um alerta do Alertmanager em uma notificação do Gotify.

    Retorna (notificacao, proceed, texto_de_erro). proceed=False indica que o
    alerta não deve ser enviado; com dispatch_errors habilitado, falhas de
    título/mensagem viram uma notificação de diagnóstico com proceed=True.
    """
    notification = OutboundNotification(priority=config.default_priority)
    external_url = resolve_external_url(alert)
    errors = []

    if config.extended_details:
        notification.extras['client::display'] = {'contentType': 'text/html'}
        marker = STATUS_MARKERS.get(alert.status)
        if marker:
            notification.message += marker['message']
            notification.title += marker['title']

    for attr, key in (('title', config.title_annotation), ('message', config.message_annotation)):
        try:
            rendered = render_annotation(alert, key, external_url)
        except (MissingAnnotationError, TemplateRenderError) as exc:
            logger.debug(f"    {attr}: {exc}")
            errors.append(str(exc))
            continue
        setattr(notification, attr, getattr(notification, attr) + rendered)
        logger.debug(f"    {attr}: {getattr(notification, attr)}")

    proceed = True
    error_text = ""
    if errors:
        if config.dispatch_errors:
            # A última falha define a notificação de diagnóstico
            notification.title = ERROR_NOTIFICATION_TITLE
            notification.message = build_error_message(errors[-1], raw_body)
        else:
            proceed = False
            error_text = "; ".join(errors)

    notification.priority = parse_priority(alert, config.priority_annotation, config.default_priority)
    logger.debug(f"    priority: {notification.priority}")

    if config.extended_details:
        if alert.generator_url.startswith("http"):
            notification.message += SOURCE_LINK_TEMPLATE.format(url=alert.generator_url)
            notification.extras['client::notification'] = {'click': {'url': alert.generator_url}}
        if alert.starts_at:
            notification.message += STARTS_AT_TEMPLATE.format(
                starts_at=alert.starts_at[:STARTS_AT_DISPLAY_LENGTH]
            )

    return notification, proceed, error_text
