from typing import Any, Iterable, Mapping, Optional, Union

from app.models.alert_model import AggregateResult, AlertRecord, SeverityLevel

FIRING = "firing"

AlertLike = Union[AlertRecord, Mapping[str, Any]]


def _status(alert: AlertLike) -> Any:
    if isinstance(alert, Mapping):
        return alert.get("status")
    return alert.status


def _labels(alert: AlertLike) -> Optional[Mapping[str, Any]]:
    if isinstance(alert, Mapping):
        labels = alert.get("labels")
    else:
        labels = alert.labels
    return labels if isinstance(labels, Mapping) else None


def _severity(alert: AlertLike) -> SeverityLevel:
    labels = _labels(alert)
    if labels is None:
        return SeverityLevel.INFO
    raw = labels.get("severity")
    return SeverityLevel.parse(raw if isinstance(raw, str) else None)


def reduce_alerts(alerts: Optional[Iterable[AlertLike]]) -> AggregateResult:
    """
    Reduce una lista de alertas a un único estado agregado.

    Solo cuentan las alertas con status exactamente "firing". La severidad de
    cada una sale de labels["severity"]; si falta o no se reconoce se usa INFO.
    El estado final es la severidad más alta encontrada (OK si no hay
    ninguna alerta activa).

    Args:
        alerts: Alertas del webhook (AlertRecord o dicts ya decodificados)

    Returns:
        AggregateResult con el estado y el número de alertas activas
    """
    active = 0
    highest = SeverityLevel.OK

    for alert in alerts or ():
        if _status(alert) != FIRING:
            continue
        active += 1
        severity = _severity(alert)
        if severity.rank > highest.rank:
            highest = severity

    return AggregateResult(state=highest, active_count=active)
