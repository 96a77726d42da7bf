from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

SOURCE = "alertmanager"


class SeverityLevel(str, Enum):
    """
    Niveles de severidad agregada, ordenados de menor a mayor.
    """

    OK = "ok"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    @property
    def token(self) -> str:
        return self.value.upper()

    @classmethod
    def parse(cls, raw: Optional[str]) -> "SeverityLevel":
        """
        Normaliza una etiqueta de severidad (trim + lower).
        Vacía o desconocida -> INFO, nunca error.
        """
        if not raw:
            return cls.INFO
        value = raw.strip().lower()
        try:
            return cls(value)
        except ValueError:
            return cls.INFO


_RANKS = {
    SeverityLevel.OK: 0,
    SeverityLevel.INFO: 1,
    SeverityLevel.WARNING: 2,
    SeverityLevel.ERROR: 3,
    SeverityLevel.CRITICAL: 4,
}


class AlertRecord(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: str = ""
    labels: Optional[Dict[str, str]] = None

    @field_validator("status", mode="before")
    @classmethod
    def _none_status_as_empty(cls, value):
        return "" if value is None else value

    @field_validator("labels", mode="before")
    @classmethod
    def _none_label_values_as_empty(cls, value):
        # null como valor de etiqueta equivale a etiqueta vacía
        if isinstance(value, dict):
            return {k: "" if v is None else v for k, v in value.items()}
        return value


class WebhookPayload(BaseModel):
    """
    Cuerpo del webhook de Alertmanager. Solo interesa la lista de alertas.
    """

    model_config = ConfigDict(extra="allow")

    alerts: List[AlertRecord] = Field(default_factory=list)

    @field_validator("alerts", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        if value is None:
            return []
        if isinstance(value, list):
            return [alert for alert in value if alert is not None]
        return value


class AggregateResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: SeverityLevel = SeverityLevel.OK
    active_count: int = Field(default=0, ge=0)

    @property
    def state_token(self) -> str:
        return self.state.token


class PublishedMessage(BaseModel):
    state: str
    active_alerts: int
    source: Literal["alertmanager"] = SOURCE

    @classmethod
    def from_result(cls, result: AggregateResult) -> "PublishedMessage":
        return cls(state=result.state_token, active_alerts=result.active_count)
