import os
from typing import Optional, Tuple

from dotenv import load_dotenv
from pydantic import BaseModel, Field, SecretStr

load_dotenv()

DEFAULT_LISTEN_ADDR = ":8080"
DEFAULT_BROKER = "tcp://mosquitto:1883"
DEFAULT_TOPIC = "homelab/health"
DEFAULT_CLIENT_ID = "alertmanager-mqtt-bridge"


class BrokerConfig(BaseModel):
    """Parámetros de conexión MQTT, se pasan una sola vez al transporte."""

    url: str = DEFAULT_BROKER
    client_id: str = DEFAULT_CLIENT_ID
    username: Optional[str] = None
    password: SecretStr = SecretStr("")
    keepalive: int = 60
    connect_retry_interval: float = Field(default=2.0, gt=0)
    connect_timeout: float = 0.0
    publish_timeout: float = 10.0


class BridgeConfig(BaseModel):
    listen_addr: str = DEFAULT_LISTEN_ADDR
    topic: str = DEFAULT_TOPIC
    webhook_token: Optional[str] = None
    log_level: str = "INFO"
    broker: BrokerConfig = BrokerConfig()

    @property
    def listen_host_port(self) -> Tuple[str, int]:
        return parse_listen_addr(self.listen_addr)


def get_env(key: str, fallback: str = "") -> str:
    value = (os.getenv(key) or "").strip()
    return value or fallback


def parse_listen_addr(addr: str) -> Tuple[str, int]:
    """
    Convierte "host:port" (o ":port") en una tupla; host vacío -> 0.0.0.0
    """
    host, sep, port = addr.strip().rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid listen address: {addr!r}")
    return host.strip("[]") or "0.0.0.0", int(port)


def get_settings() -> BridgeConfig:
    username = get_env("MQTT_USERNAME") or None
    return BridgeConfig(
        listen_addr=get_env("HTTP_LISTEN_ADDR", DEFAULT_LISTEN_ADDR),
        topic=get_env("MQTT_TOPIC", DEFAULT_TOPIC),
        webhook_token=get_env("WEBHOOK_TOKEN") or None,
        log_level=get_env("LOG_LEVEL", "INFO").upper(),
        broker=BrokerConfig(
            url=get_env("MQTT_BROKER", DEFAULT_BROKER),
            client_id=get_env("MQTT_CLIENT_ID", DEFAULT_CLIENT_ID),
            username=username,
            password=SecretStr(get_env("MQTT_PASSWORD")),
            keepalive=int(get_env("MQTT_KEEPALIVE", "60")),
            connect_retry_interval=float(get_env("MQTT_CONNECT_RETRY_INTERVAL", "2")),
            connect_timeout=float(get_env("MQTT_CONNECT_TIMEOUT", "0")),
            publish_timeout=float(get_env("MQTT_PUBLISH_TIMEOUT", "10")),
        ),
    )
