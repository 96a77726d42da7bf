import asyncio
import hmac
import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError

from app.core.config import BridgeConfig
from app.models.alert_model import WebhookPayload
from app.routes.items.get_bridge_service import get_bridge_service, get_config
from app.services.bridge_service import BridgeService
from app.services.state_publisher import PublishError

router = APIRouter()

logger = logging.getLogger("webhook")


# --------------------------------------------------------------------
# Helpers
# --------------------------------------------------------------------


def verify_token(authorization: Optional[str], expected: Optional[str]) -> bool:
    """
    Verifica 'Authorization: Bearer <token>' contra el token configurado.
    Sin token configurado no se exige autenticación.
    """
    if not expected:
        return True
    if not authorization:
        return False

    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return False

    return hmac.compare_digest(token.strip().encode(), expected.encode())


def is_json_content_type(content_type: str) -> bool:
    return not content_type or content_type.startswith("application/json")


# --------------------------------------------------------------------
# Webhook principal
# --------------------------------------------------------------------


@router.post("/alert")
async def alert_webhook(
    request: Request,
    config: BridgeConfig = Depends(get_config),
    bridge_service: BridgeService = Depends(get_bridge_service),
):
    """
    Endpoint para webhooks de Alertmanager
    - Verifica el token Bearer si está configurado
    - Valida content-type y JSON
    - Calcula el estado agregado y lo publica retenido en MQTT
    """
    client = request.client.host if request.client else "unknown"
    logger.info("received alert webhook from %s", client)

    if not verify_token(request.headers.get("authorization"), config.webhook_token):
        logger.warning("invalid or missing bearer token from %s", client)
        raise HTTPException(status_code=401, detail="invalid token")

    content_type = request.headers.get("content-type", "")
    if not is_json_content_type(content_type):
        logger.warning("unsupported content type: %s", content_type)
        raise HTTPException(status_code=415, detail="unsupported content type")

    body = await request.body()
    try:
        data = json.loads(body)
        # un cuerpo "null" equivale a un webhook sin alertas
        payload = WebhookPayload.model_validate({} if data is None else data)
    except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
        logger.warning("failed to decode json payload: %s", e)
        raise HTTPException(status_code=400, detail="invalid json payload")

    try:
        result = await asyncio.to_thread(bridge_service.process, payload)
    except PublishError as e:
        logger.error("mqtt publish failed: %s", e)
        raise HTTPException(status_code=502, detail="failed to publish")

    logger.info(
        "successfully published state %s to topic %s",
        result.state_token,
        bridge_service.topic,
    )
    return {
        "status": "published",
        "state": result.state_token,
        "active_alerts": result.active_count,
    }
