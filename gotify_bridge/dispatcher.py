import logging
from typing import Tuple

import requests

from .errors import PayloadError
from .models import InboundNotification
from .services import send_gotify_notification
from .transformer import transform_alert

logger = logging.getLogger(__name__)


def _status_severity(code: int) -> int:
    if code >= 500:
        return 3
    if code >= 400:
        return 2
    if code != 200:
        return 1
    return 0


def worst_status(current: int, candidate: int) -> int:
    """Mantém o status mais grave (5xx > 4xx > outros != 200 > 200); empate fica com o mais recente."""
    if _status_severity(candidate) >= _status_severity(current):
        return candidate
    return current


class BatchDispatcher:
    """
    Processa uma requisição do Alertmanager: cada alerta é transformado e enviado
    de forma independente, em ordem, e os resultados viram uma única resposta.
    """

    def __init__(self, config, metrics, sender=send_gotify_notification):
        self.config = config
        self.metrics = metrics
        self.sender = sender

    def handle(self, raw_body: bytes, token: str) -> Tuple[str, int]:
        if not raw_body:
            return "No content sent", 400

        logger.debug(f"bridge: data sent - unmarshalling from JSON: {raw_body!r}")
        try:
            notification = InboundNotification.from_json(raw_body)
        except PayloadError as exc:
            logger.warning(f"bridge: Unmarshal of request failed: {exc}")
            logger.warning(f"BEGIN passed data:\n{raw_body.decode('utf-8', errors='replace')}\nEND passed data.")
            self.metrics.inc('requests_invalid')
            return str(exc), 400

        self.metrics.inc('requests_received')
        logger.debug(f"Detected {len(notification.alerts)} alerts")

        lines = []
        status = 200
        for idx, alert in enumerate(notification.alerts):
            self.metrics.inc('alerts_received')
            logger.debug(f"    Alert {idx}")

            outbound, proceed, error_text = transform_alert(alert, self.config, raw_body)
            if not proceed:
                logger.debug("    Unable to dispatch!")
                self.metrics.inc('alerts_invalid')
                lines.append(error_text)
                status = worst_status(status, 400)
                continue

            logger.debug("    Dispatching to gotify...")
            try:
                resp = self.sender(outbound, self.config.gotify_endpoint, token, self.config.timeout)
            except (requests.RequestException, ValueError) as exc:
                # ValueError: token que não pode ir num header HTTP (UnicodeEncodeError, InvalidHeader)
                logger.warning(f"    Error dispatching to Gotify: {exc}")
                self.metrics.inc('alerts_failed')
                lines.append(str(exc))
                status = worst_status(status, 500)
                continue

            if resp.status_code != 200:
                logger.warning(
                    f"Non-200 response from gotify at {self.config.gotify_endpoint}. "
                    f"Code: {resp.status_code}, Status: {resp.reason} (enable debug to see body)"
                )
                self.metrics.inc('alerts_failed')
                lines.append(f"downstream error: {resp.status_code} {resp.reason or ''}".rstrip())
                status = worst_status(status, resp.status_code)
                continue

            self.metrics.inc('alerts_processed')
            lines.append(f"Message {idx} dispatched")

        return "\n".join(lines), status
