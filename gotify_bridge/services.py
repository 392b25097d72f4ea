import json
import logging

import requests

from .constants import GOTIFY_HEALTH_SUFFIX, GOTIFY_MESSAGE_SUFFIX, GOTIFY_TOKEN_HEADER

logger = logging.getLogger(__name__)


def send_gotify_notification(notification, endpoint, token, timeout):
    """
    Envia uma notificação ao endpoint /message do Gotify (uma tentativa, sem retry).
    Falhas de conexão/timeout sobem como requests.RequestException.
    """
    payload = notification.to_payload()
    logger.debug(f"    Outbound: {json.dumps(payload)}")

    resp = requests.post(
        endpoint,
        json=payload,
        headers={
            'Content-Type': 'application/json',
            GOTIFY_TOKEN_HEADER: token,
        },
        timeout=timeout,
    )
    logger.debug(f"    Dispatched! Response was {resp.status_code}: {resp.text}")
    return resp


def health_endpoint_for(endpoint):
    # removesuffix e não replace: o path pode conter "/message" em outro ponto (proxies)
    base = endpoint.removesuffix(GOTIFY_MESSAGE_SUFFIX)
    return f"{base}{GOTIFY_HEALTH_SUFFIX}"


def probe_gotify_health(endpoint, timeout):
    """
    Consulta o /health do Gotify.
    Retorna (up, status): up indica se a chamada HTTP foi concluída; status sempre
    contém 'health' e 'database' ("error" quando não foi possível ler).
    """
    status = {'health': 'error', 'database': 'error'}
    url = health_endpoint_for(endpoint)
    try:
        resp = requests.get(url, timeout=timeout)
    except requests.RequestException as exc:
        logger.warning(f"Error getting health information from gotify: {exc}")
        return False, status

    try:
        body = resp.json()
    except ValueError as exc:
        logger.warning(f"Invalid JSON returned from gotify: {exc}")
        return True, status

    if isinstance(body, dict):
        for key, value in body.items():
            status[str(key)] = str(value)
    else:
        logger.warning(f"Invalid JSON returned from gotify: expected an object, got {type(body).__name__}")
    return True, status
