from abc import ABC, abstractmethod


class TransportError(Exception):
    """Fallo del transporte de mensajería (no conectado, rechazo, timeout)."""


class BaseTransport(ABC):
    @abstractmethod
    def connect(self) -> None:
        """Abre la conexión con el broker."""
        pass

    @abstractmethod
    def is_connected(self) -> bool:
        """Indica si la conexión con el broker está activa."""
        pass

    @abstractmethod
    def publish(
        self, topic: str, payload: bytes, qos: int = 1, retain: bool = True
    ) -> None:
        """Publica un mensaje; lanza TransportError si no se pudo entregar."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Cierra la conexión."""
        pass
