import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import PayloadError
from .utils import humanize_two_decimals

_VALUE_RECORD_RE = re.compile(r"\[ ?metric='(.*?)' ?labels=\{(.*?)\} ?value=(.*?) ?\]")
_VALUE_LABEL_RE = re.compile(r"([^=, ]+?)=([^=, ]+)")


class LabelSet(dict):
    """Mapa de labels/annotations que devolve "" para chaves ausentes nos templates."""

    def __missing__(self, key):
        return ""


@dataclass
class AlertValue:
    metric: str
    labels: Dict[str, str]
    value: float


class InboundAlert(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    annotations: Dict[str, str] = Field(default_factory=LabelSet)
    status: str = ""
    labels: Dict[str, str] = Field(default_factory=LabelSet)
    generator_url: str = Field(default="", alias="generatorURL")
    starts_at: str = Field(default="", alias="startsAt")
    value_string: str = Field(default="", alias="valueString")
    external_url: str = Field(default="", alias="externalURL")

    @model_validator(mode='before')
    @classmethod
    def _accept_null_and_value_key(cls, data):
        if data is None:
            return {}
        # Grafana envia valueString; alguns emissores usam "value" com o mesmo conteúdo
        if isinstance(data, dict) and data.get('valueString') is None and isinstance(data.get('value'), str):
            data = dict(data, valueString=data['value'])
        return data

    @field_validator('status', 'generator_url', 'starts_at', 'value_string', 'external_url', mode='before')
    @classmethod
    def _null_as_empty_string(cls, value):
        return "" if value is None else value

    @field_validator('annotations', 'labels', mode='before')
    @classmethod
    def _null_as_empty_map(cls, value):
        if value is None:
            return {}
        if isinstance(value, dict):
            return {key: "" if item is None else item for key, item in value.items()}
        return value

    @field_validator('annotations', 'labels')
    @classmethod
    def _as_label_set(cls, value):
        return LabelSet(value)

    def values(self) -> List[AlertValue]:
        """
        Extrai os registros "[ metric='M' labels={K=V, ...} value=X ]" do valueString.
        Valores numéricos inválidos viram -1 em vez de falhar.
        """
        records = []
        for metric, labels_text, raw_value in _VALUE_RECORD_RE.findall(self.value_string or ''):
            try:
                value = float(raw_value.strip())
            except ValueError:
                value = -1
            labels = LabelSet((k, v) for k, v in _VALUE_LABEL_RE.findall(labels_text))
            records.append(AlertValue(metric=metric, labels=labels, value=value))
        return records

    def humanize(self, value) -> str:
        return humanize_two_decimals(value)

    def template_context(self, external_url: Optional[str] = None) -> Dict[str, Any]:
        return {
            'alert': self,
            'status': self.status,
            'annotations': self.annotations,
            'labels': self.labels,
            'generatorURL': self.generator_url,
            'startsAt': self.starts_at,
            'externalURL': external_url or "",
            'valueString': self.value_string,
            'values': self.values,
            'Humanize': self.humanize,
        }




class InboundNotification(BaseModel):
    alerts: List[InboundAlert] = Field(default_factory=list)

    @model_validator(mode='before')
    @classmethod
    def _accept_null(cls, data):
        # Corpo "null" ou "alerts": null equivalem a uma notificação sem alertas
        if data is None:
            return {}
        if isinstance(data, dict) and data.get('alerts', []) is None:
            data = dict(data, alerts=[])
        return data

    @classmethod
    def from_json(cls, body):
        try:
            if isinstance(body, bytes):
                body = body.decode('utf-8')
            return cls.model_validate_json(body)
        except UnicodeDecodeError as exc:
            raise PayloadError(str(exc)) from exc
        except ValidationError as exc:
            raise PayloadError(str(exc)) from exc

    @classmethod
    def from_dict(cls, data):
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise PayloadError(str(exc)) from exc


@dataclass
class OutboundNotification:
    title: str = ""
    message: str = ""
    priority: int = 0
    extras: Dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        return {
            'title': self.title,
            'message': self.message,
            'priority': self.priority,
            'extras': self.extras,
        }
