import logging

from app.broker.base_transport import BaseTransport, TransportError
from app.models.alert_model import AggregateResult, PublishedMessage

logger = logging.getLogger("bridge")

QOS_AT_LEAST_ONCE = 1


class PublishError(Exception):
    """El estado agregado no pudo entregarse al broker."""


def encode_message(result: AggregateResult) -> bytes:
    """
    Serializa el estado como JSON compacto: state, active_alerts, source.
    """
    message = PublishedMessage.from_result(result)
    return message.model_dump_json().encode("utf-8")


def publish_state(transport: BaseTransport, topic: str, result: AggregateResult) -> None:
    """
    Publica el estado agregado como mensaje retenido (QoS 1).

    Un único intento por llamada: los reintentos y la reconexión son cosa del
    transporte. Cualquier fallo se propaga como PublishError.
    """
    try:
        payload = encode_message(result)
    except (TypeError, ValueError) as e:
        logger.error("failed to encode mqtt message: %s", e)
        raise PublishError(f"encoding failed: {e}") from e

    logger.info(
        "publishing to topic %s: state=%s, active_alerts=%d",
        topic,
        result.state_token,
        result.active_count,
    )
    try:
        transport.publish(topic, payload, qos=QOS_AT_LEAST_ONCE, retain=True)
    except TransportError as e:
        logger.error("mqtt publish error: %s", e)
        raise PublishError(str(e)) from e

    logger.info("mqtt message published successfully (qos=1, retained=true)")
