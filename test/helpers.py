import json
from unittest.mock import Mock

from gotify_bridge.config import BridgeConfig


def make_config(**overrides):
    values = {
        'gotify_endpoint': 'http://gotify.local/message',
        'gotify_token': 'default-token',
        'timeout': 5.0,
    }
    values.update(overrides)
    return BridgeConfig(**values)


def make_alert(summary="Disk full on {{ labels.instance }}", description="Usage is high", **fields):
    annotations = {}
    if summary is not None:
        annotations['summary'] = summary
    if description is not None:
        annotations['description'] = description
    alert = {
        'status': 'firing',
        'labels': {'alertname': 'DiskFull', 'instance': 'node-01:9100'},
        'annotations': annotations,
        'generatorURL': 'http://prometheus.local/graph?g0.expr=up',
        'startsAt': '2024-05-01T10:20:30.123456789Z',
    }
    alert.update(fields)
    return alert


def make_body(*alerts):
    return json.dumps({'alerts': list(alerts)}).encode('utf-8')


def gotify_response(status_code=200, reason="OK"):
    resp = Mock()
    resp.status_code = status_code
    resp.reason = reason
    resp.text = '{"id": 1}'
    return resp
