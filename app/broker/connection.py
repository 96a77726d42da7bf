import logging
import threading
import time
from typing import Optional, Tuple
from urllib.parse import urlparse

import paho.mqtt.client as mqtt

from app.broker.base_transport import BaseTransport, TransportError
from app.core.config import BrokerConfig

logger = logging.getLogger("broker")

PLAIN_SCHEMES = ("tcp", "mqtt")
TLS_SCHEMES = ("ssl", "tls", "mqtts")
MAX_RECONNECT_DELAY = 120

_transport: Optional["MqttTransport"] = None


def parse_broker_url(url: str) -> Tuple[str, int, bool]:
    """
    "tcp://host:1883" -> ("host", 1883, False). Sin esquema se asume tcp.
    """
    if "://" not in url:
        url = f"tcp://{url}"
    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    if scheme not in PLAIN_SCHEMES + TLS_SCHEMES:
        raise ValueError(f"unsupported broker scheme: {scheme!r}")
    if not parsed.hostname:
        raise ValueError(f"missing broker host in {url!r}")
    use_tls = scheme in TLS_SCHEMES
    port = parsed.port or (8883 if use_tls else 1883)
    return parsed.hostname, port, use_tls


class MqttTransport(BaseTransport):
    """Cliente MQTT (paho) con reconexión automática."""

    def __init__(self, config: BrokerConfig):
        self.config = config
        self.host, self.port, self.use_tls = parse_broker_url(config.url)
        self._connected = threading.Event()
        self._closing = False

        self.client = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=config.client_id,
        )
        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect
        self.client.reconnect_delay_set(
            min_delay=config.connect_retry_interval,
            max_delay=max(config.connect_retry_interval, MAX_RECONNECT_DELAY),
        )

        if config.username:
            self.client.username_pw_set(
                config.username, config.password.get_secret_value()
            )
            logger.info("mqtt authentication configured")
        if self.use_tls:
            self.client.tls_set()

    # ---------- callbacks ----------
    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code.is_failure:
            logger.warning("mqtt connect refused: %s", reason_code)
            return
        self._connected.set()
        logger.info("mqtt client connected to %s:%s", self.host, self.port)

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        self._connected.clear()
        if self._closing:
            return
        logger.warning("mqtt connection lost: %s", reason_code)

    # ---------- BaseTransport ----------
    def connect(self) -> None:
        """
        Conecta en segundo plano y espera al primer CONNACK.
        Con connect_timeout == 0 espera indefinidamente.
        """
        logger.info(
            "connecting to mqtt broker: %s:%s (client_id: %s)",
            self.host,
            self.port,
            self.config.client_id,
        )
        self.client.connect_async(self.host, self.port, keepalive=self.config.keepalive)
        self.client.loop_start()

        timeout = self.config.connect_timeout
        deadline = time.monotonic() + timeout if timeout > 0 else None
        while not self._connected.wait(self.config.connect_retry_interval):
            if deadline is not None and time.monotonic() >= deadline:
                self.client.loop_stop()
                raise TransportError(
                    f"mqtt connect failed: no connection to {self.host}:{self.port} "
                    f"after {timeout:g}s"
                )
            logger.info("waiting for mqtt connection...")
        logger.info("mqtt connection established successfully")

    def is_connected(self) -> bool:
        return self.client.is_connected()

    def publish(
        self, topic: str, payload: bytes, qos: int = 1, retain: bool = True
    ) -> None:
        if not self.is_connected():
            raise TransportError("mqtt client not connected")

        info = self.client.publish(topic, payload, qos=qos, retain=retain)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise TransportError(f"publish rejected: {mqtt.error_string(info.rc)}")

        try:
            info.wait_for_publish(timeout=self.config.publish_timeout)
            published = info.is_published()
        except (RuntimeError, ValueError) as e:
            raise TransportError(f"publish failed: {e}") from e

        if not published:
            raise TransportError(
                f"publish not acknowledged within {self.config.publish_timeout:g}s"
            )

    def close(self) -> None:
        self._closing = True
        self.client.disconnect()
        self.client.loop_stop()
        self._connected.clear()
        logger.info("mqtt client disconnected")


# ---------- Ciclo de vida del cliente compartido ----------
def init_transport(config: BrokerConfig) -> MqttTransport:
    global _transport
    if _transport is not None:
        return _transport
    transport = MqttTransport(config)
    transport.connect()
    _transport = transport
    return _transport


def current_transport() -> MqttTransport:
    if _transport is None:
        raise RuntimeError("mqtt transport not initialised")
    return _transport


def close_transport() -> None:
    global _transport
    if _transport is not None:
        _transport.close()
        _transport = None
