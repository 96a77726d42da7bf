import json
from unittest.mock import Mock

import pytest

from app.broker.base_transport import TransportError
from app.models.alert_model import WebhookPayload
from app.services.bridge_service import BridgeService
from app.services.state_publisher import PublishError


@pytest.fixture
def bridge_service(fake_transport):
    """Instancia de BridgeService con transporte en memoria."""
    return BridgeService(transport=fake_transport, topic="homelab/health")


@pytest.mark.service
def test_process_publishes_aggregate(bridge_service, fake_transport, alertmanager_webhook):
    # Arrange
    payload = WebhookPayload.model_validate(alertmanager_webhook)

    # Act
    result = bridge_service.process(payload)

    # Assert
    assert result.state_token == "CRITICAL"
    assert result.active_count == 2
    sent = fake_transport.published[0]
    assert sent["topic"] == "homelab/health"
    assert json.loads(sent["payload"]) == {
        "state": "CRITICAL",
        "active_alerts": 2,
        "source": "alertmanager",
    }


@pytest.mark.service
def test_process_all_resolved_publishes_ok(bridge_service, fake_transport, resolved_webhook):
    payload = WebhookPayload.model_validate(resolved_webhook)

    result = bridge_service.process(payload)

    assert result.state_token == "OK"
    assert json.loads(fake_transport.published[0]["payload"])["active_alerts"] == 0


@pytest.mark.service
def test_process_propagates_publish_error():
    transport = Mock()
    transport.publish.side_effect = TransportError("mqtt client not connected")
    service = BridgeService(transport=transport, topic="t")

    with pytest.raises(PublishError):
        service.process(WebhookPayload(alerts=[]))

    transport.publish.assert_called_once()


@pytest.mark.service
def test_payload_missing_alerts_is_empty():
    assert WebhookPayload.model_validate({}).alerts == []
    assert WebhookPayload.model_validate({"alerts": None}).alerts == []
