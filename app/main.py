import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse

from app.broker.base_transport import BaseTransport
from app.broker.connection import close_transport, init_transport
from app.core.config import BridgeConfig, get_settings
from app.routes.items.get_bridge_service import get_config, get_transport
from app.routes.webhook import router as webhook_router

logger = logging.getLogger("bridge")


def create_app(
    config: Optional[BridgeConfig] = None, transport: Optional[BaseTransport] = None
) -> FastAPI:
    """
    Construye la app. Si no se pasa transporte, el lifespan conecta el
    cliente MQTT compartido al arrancar y lo cierra al apagar.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        settings = config or get_settings()
        app.state.config = settings
        logger.info("starting alertmanager-webhook-mqtt-bridge")
        logger.info(
            "configuration: broker=%s, topic=%s, client_id=%s, listen_addr=%s",
            settings.broker.url,
            settings.topic,
            settings.broker.client_id,
            settings.listen_addr,
        )
        if settings.broker.username:
            logger.info(
                "mqtt authentication enabled for user: %s", settings.broker.username
            )

        owns_transport = transport is None
        if owns_transport:
            app.state.transport = await asyncio.to_thread(
                init_transport, settings.broker
            )
        else:
            app.state.transport = transport
        logger.info("endpoints: POST /alert, GET /health")

        yield

        if owns_transport:
            await asyncio.to_thread(close_transport)
        logger.info("bridge stopped")

    app = FastAPI(title="Alertmanager MQTT Bridge", lifespan=lifespan)
    app.include_router(webhook_router)

    # ---------- Ruta de salud ----------
    @app.get("/health")
    def health_check(
        config: BridgeConfig = Depends(get_config),
        transport: BaseTransport = Depends(get_transport),
    ):
        connected = transport.is_connected()
        if not connected:
            logger.warning("health check: mqtt client not connected")

        return JSONResponse(
            status_code=200 if connected else 503,
            content={
                "status": "healthy" if connected else "unhealthy",
                "mqtt_connected": connected,
                "broker": config.broker.url,
                "topic": config.topic,
            },
        )

    return app


app = create_app()
