import logging

from fastapi import Depends, HTTPException, Request

from app.broker.base_transport import BaseTransport
from app.broker.connection import current_transport
from app.core.config import BridgeConfig
from app.services.bridge_service import BridgeService


def get_config(request: Request) -> BridgeConfig:
    return request.app.state.config


def get_transport(request: Request) -> BaseTransport:
    transport = getattr(request.app.state, "transport", None)
    if transport is not None:
        return transport
    try:
        # app sin lifespan propio: usar el cliente compartido del proceso
        return current_transport()
    except RuntimeError as e:
        logging.error(f"Error initializing BridgeService dependencies: {e}")
        raise HTTPException(
            status_code=500, detail="Internal Server Error: broker dependency failed."
        )


def get_bridge_service(
    transport: BaseTransport = Depends(get_transport),
    config: BridgeConfig = Depends(get_config),
) -> BridgeService:
    return BridgeService(transport, config.topic)
