import json
from pathlib import Path

import pytest

from app.broker.base_transport import BaseTransport, TransportError
from app.core.config import BridgeConfig


class FakeTransport(BaseTransport):
    """Transporte en memoria que registra cada publicación."""

    def __init__(self, connected: bool = True, fail_with: str = ""):
        self.connected = connected
        self.fail_with = fail_with
        self.published = []

    def connect(self) -> None:
        self.connected = True

    def is_connected(self) -> bool:
        return self.connected

    def publish(self, topic, payload, qos=1, retain=True):
        self.published.append(
            {"topic": topic, "payload": payload, "qos": qos, "retain": retain}
        )
        if not self.connected:
            raise TransportError("mqtt client not connected")
        if self.fail_with:
            raise TransportError(self.fail_with)

    def close(self) -> None:
        self.connected = False


@pytest.fixture
def fixtures_dir():
    """Retorna el path al directorio de fixtures."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def load_fixture(fixtures_dir):
    """Factory fixture para cargar archivos JSON."""

    def _load(filename: str):
        filepath = fixtures_dir / filename
        with open(filepath, "r", encoding="utf-8") as f:
            return json.load(f)

    return _load


@pytest.fixture
def alertmanager_webhook(load_fixture):
    """Webhook con una alerta warning, una critical y una resuelta."""
    return load_fixture("alertmanager_webhook.json")


@pytest.fixture
def resolved_webhook(load_fixture):
    """Webhook con todas las alertas resueltas."""
    return load_fixture("alertmanager_webhook_resolved.json")


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def disconnected_transport():
    return FakeTransport(connected=False)


@pytest.fixture
def failing_transport():
    return FakeTransport(fail_with="publish not acknowledged within 10s")


@pytest.fixture
def bridge_config():
    return BridgeConfig(topic="homelab/health")
