"""Funções disponíveis nos templates de título/mensagem.

Mesma semântica das funções de template do Prometheus/Alertmanager, exceto as que
dependem de consultas ao servidor (ver UNSUPPORTED_TEMPLATE_FUNCTIONS).
Todas são registradas como globais e como filtros, então `humanize(x)` e
`x | humanize` são equivalentes.
"""
import ipaddress
import math
import re
from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import quote_plus, urlsplit

from .utils import split_host_port

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_INT64_MAX = 2 ** 63 - 1
_INT64_MIN = -(2 ** 63)

_PROM_DURATION_RE = re.compile(
    r'^(?:(\d+)y)?(?:(\d+)w)?(?:(\d+)d)?(?:(\d+)h)?(?:(\d+)m)?(?:(\d+)s)?(?:(\d+)ms)?$'
)
_PROM_DURATION_UNITS = (365 * 86400, 7 * 86400, 86400, 3600, 60, 1, 0.001)
_GROUP_REF_RE = re.compile(r'\$(\$|\{([A-Za-z0-9_]+)\}|([A-Za-z0-9_]+))')


def convert_to_float(value) -> float:
    if isinstance(value, bool):
        raise TypeError(f"can't convert {type(value).__name__} to float")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        return float(value)
    raise TypeError(f"can't convert {type(value).__name__} to float")


def _format_g(value: float, suffix: str = "") -> str:
    if math.isnan(value):
        return "NaN" + suffix
    if math.isinf(value):
        return ("+Inf" if value > 0 else "-Inf") + suffix
    return f"{value:.4g}{suffix}"


def humanize(value) -> str:
    v = convert_to_float(value)
    if v == 0 or math.isnan(v) or math.isinf(v):
        return _format_g(v)
    prefix = ""
    if abs(v) >= 1:
        for p in ("k", "M", "G", "T", "P", "E", "Z", "Y"):
            if abs(v) < 1000:
                break
            prefix = p
            v /= 1000
        return _format_g(v, prefix)
    for p in ("m", "u", "n", "p", "f", "a", "z", "y"):
        if abs(v) >= 1:
            break
        prefix = p
        v *= 1000
    return _format_g(v, prefix)


def humanize1024(value) -> str:
    v = convert_to_float(value)
    if abs(v) <= 1 or math.isnan(v) or math.isinf(v):
        return _format_g(v)
    prefix = ""
    for p in ("ki", "Mi", "Gi", "Ti", "Pi", "Ei", "Zi", "Yi"):
        if abs(v) < 1024:
            break
        prefix = p
        v /= 1024
    return _format_g(v, prefix)


def humanize_duration(value) -> str:
    v = convert_to_float(value)
    if math.isnan(v) or math.isinf(v):
        return _format_g(v)
    if v == 0:
        return _format_g(v, "s")
    if abs(v) >= 1:
        sign = ""
        if v < 0:
            sign = "-"
            v = -v
        duration = int(v)
        seconds = duration % 60
        minutes = (duration // 60) % 60
        hours = (duration // 3600) % 24
        days = duration // 86400
        # De dias até minutos, segundos são exibidos como inteiro
        if days:
            return f"{sign}{days}d {hours}h {minutes}m {seconds}s"
        if hours:
            return f"{sign}{hours}h {minutes}m {seconds}s"
        if minutes:
            return f"{sign}{minutes}m {seconds}s"
        return f"{sign}{_format_g(v)}s"
    prefix = ""
    for p in ("m", "u", "n", "p", "f", "a", "z", "y"):
        if abs(v) >= 1:
            break
        prefix = p
        v *= 1000
    return _format_g(v, prefix + "s")


def humanize_percentage(value) -> str:
    return _format_g(convert_to_float(value) * 100, "%")


def to_time(value) -> datetime:
    v = convert_to_float(value)
    if math.isnan(v) or math.isinf(v):
        raise ValueError("value is NaN or Inf")
    nanos = v * 1e9
    if nanos > _INT64_MAX or nanos < _INT64_MIN:
        raise ValueError(f"{v} cannot be represented as a nanoseconds timestamp since it overflows int64")
    return _EPOCH + timedelta(microseconds=round(v * 1e6))


def humanize_timestamp(value) -> str:
    v = convert_to_float(value)
    if math.isnan(v) or math.isinf(v):
        return _format_g(v)
    moment = to_time(v)
    text = moment.strftime("%Y-%m-%d %H:%M:%S")
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    return text + " +0000 UTC"


def parse_duration(text) -> float:
    """Duração no formato do Prometheus ("1h30m", "2d", "500ms") em segundos."""
    text = str(text)
    if text == "0":
        return 0.0
    match = _PROM_DURATION_RE.match(text)
    if not text or not match:
        raise ValueError(f"not a valid duration string: {text!r}")
    total = 0.0
    for amount, unit in zip(match.groups(), _PROM_DURATION_UNITS):
        if amount:
            total += int(amount) * unit
    return total


def re_replace_all(pattern, repl, text) -> str:
    regex = re.compile(pattern)

    def expand(found):
        def ref(group_match):
            if group_match.group(1) == "$":
                return "$"
            name = group_match.group(2) or group_match.group(3)
            try:
                group = found.group(int(name)) if name.isdigit() else found.group(name)
            except IndexError:
                group = None
            return group or ""
        return _GROUP_REF_RE.sub(ref, repl)

    return regex.sub(expand, text)


def match(pattern, text) -> bool:
    return re.search(pattern, text) is not None


def title(text) -> str:
    return str(text).title()


def to_upper(text) -> str:
    return str(text).upper()


def to_lower(text) -> str:
    return str(text).lower()


def graph_link(expr) -> str:
    return f"/graph?g0.expr={quote_plus(str(expr))}&g0.tab=0"


def table_link(expr) -> str:
    return f"/graph?g0.expr={quote_plus(str(expr))}&g0.tab=1"


def strip_port(hostport) -> str:
    try:
        host, _ = split_host_port(hostport)
    except ValueError:
        return hostport
    return host


def strip_domain(hostport) -> str:
    try:
        host, port = split_host_port(hostport)
    except ValueError:
        host, port = hostport, ""
    try:
        ipaddress.ip_address(host)
        return hostport
    except ValueError:
        pass
    host = host.split(".")[0]
    if port:
        return f"{host}:{port}"
    return host


def args(*values):
    return {f"arg{idx}": value for idx, value in enumerate(values)}


def url_functions(external_url: Optional[str]):
    """Funções que dependem da URL externa resolvida para o alerta."""
    def path_prefix():
        if not external_url:
            return ""
        return urlsplit(external_url).path

    return {
        'pathPrefix': path_prefix,
    }


TEMPLATE_FUNCTIONS = {
    'reReplaceAll': re_replace_all,
    'match': match,
    'title': title,
    'toUpper': to_upper,
    'toLower': to_lower,
    'graphLink': graph_link,
    'tableLink': table_link,
    'stripPort': strip_port,
    'stripDomain': strip_domain,
    'humanize': humanize,
    'humanize1024': humanize1024,
    'humanizeDuration': humanize_duration,
    'humanizePercentage': humanize_percentage,
    'humanizeTimestamp': humanize_timestamp,
    'toTime': to_time,
    'parseDuration': parse_duration,
    'args': args,
}
