import logging

from app.broker.base_transport import BaseTransport
from app.models.alert_model import AggregateResult, WebhookPayload
from app.services.severity_reducer import reduce_alerts
from app.services.state_publisher import publish_state

logger = logging.getLogger("bridge")


class BridgeService:
    """
    Servicio que reduce un webhook de Alertmanager a un estado y lo publica.
    """

    def __init__(self, transport: BaseTransport, topic: str):
        self.transport = transport
        self.topic = topic

    def process(self, payload: WebhookPayload) -> AggregateResult:
        """
        Procesa un webhook: calcula el estado agregado y lo publica.

        Args:
            payload: Cuerpo del webhook ya validado

        Returns:
            AggregateResult publicado

        Raises:
            PublishError: si el broker no aceptó el mensaje
        """
        logger.info("processing webhook: %d alerts received", len(payload.alerts))
        result = reduce_alerts(payload.alerts)
        logger.info(
            "calculated state: %s (%d active alerts)",
            result.state_token,
            result.active_count,
        )

        publish_state(self.transport, self.topic, result)
        return result
