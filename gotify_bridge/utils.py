import math
import re

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r'(\d*\.?\d+)(ns|us|µs|ms|s|m|h)')
_DURATION_FULL = re.compile(r'^[+-]?(?:\d*\.?\d+(?:ns|us|µs|ms|s|m|h))+$')

_TRUE_VALUES = {"1", "true", "yes", "on"}


def env_flag(value, default=False):
    if value is None or str(value).strip() == "":
        return default
    return str(value).strip().lower() in _TRUE_VALUES


def parse_timeout(value) -> float:
    """
    Converte o timeout configurado em segundos.
    Aceita número puro ("5", "2.5") ou duração com unidades ("5s", "1m30s", "500ms").
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        seconds = float(value)
    else:
        text = str(value or "").strip()
        if not text:
            raise ValueError("empty duration")
        try:
            seconds = float(text)
        except ValueError:
            if not _DURATION_FULL.match(text):
                raise ValueError(f"invalid duration {text!r}")
            sign = -1.0 if text.startswith("-") else 1.0
            seconds = sign * sum(float(amount) * _DURATION_UNITS[unit]
                                 for amount, unit in _DURATION_PART.findall(text))
    if seconds <= 0:
        raise ValueError(f"timeout must be positive, got {value!r}")
    return seconds


def round_half_away(value: float, digits: int = 2) -> float:
    factor = 10 ** digits
    scaled = math.floor(abs(value) * factor + 0.5) / factor
    return -scaled if value < 0 else scaled


def format_float(value: float) -> str:
    """Formata sem zeros à direita na parte fracionária (5.0 -> "5", 5.30 -> "5.3")."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    text = f"{value:.6f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text == "-0":
        text = "0"
    return text


def humanize_two_decimals(value) -> str:
    return format_float(round_half_away(float(value), 2))


def split_host_port(hostport: str):
    """Separa host e porta; exige a porta e colchetes em endereços IPv6."""
    if hostport.startswith("["):
        end = hostport.find("]")
        if end == -1 or hostport[end + 1:end + 2] != ":":
            raise ValueError(f"missing port in address {hostport!r}")
        return hostport[1:end], hostport[end + 2:]
    if hostport.count(":") != 1:
        raise ValueError(f"invalid host:port {hostport!r}")
    host, port = hostport.split(":", 1)
    return host, port
