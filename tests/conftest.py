"""Fixtures compartidos para las pruebas del webhook."""

import hashlib
import hmac
import json
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from app.config import Config, get_config
from app.internal.integrations.email import Notificador
from app.internal.integrations.shipengine import ShipEngineClient
from app.main import app
from app.models.pydantic.shipengine.label import LabelResponse
from app.routers.webhooks import get_notificador, get_shipengine_client

IPN_SECRET = 'test-ipn-secret'


def sign(body: str, secret: str = IPN_SECRET) -> str:
    """Firma un cuerpo ya canonicalizado (llaves ordenadas, sin espacios)."""
    return hmac.new(secret.encode(), body.encode(), hashlib.sha512).hexdigest()


def encode(payload: dict) -> str:
    return json.dumps(payload, separators=(',', ':'), sort_keys=True, ensure_ascii=False)


@pytest.fixture()
def config() -> Config:
    return Config.from_options(
        {
            'ipn_secret': IPN_SECRET,
            'shipengine_api_key': 'TEST_shipengine_key',
            'admin_email': 'admin@example.com',
            'smtp_host': 'smtp.example.com',
            'mail_domain': 'shop.example.com',
        }
    )


@pytest.fixture()
def shipengine() -> AsyncMock:
    client = AsyncMock(spec=ShipEngineClient)
    client.crear_etiqueta.return_value = LabelResponse(
        label_id='se-1', label_download={'href': 'https://api.shipengine.com/v1/downloads/se-1.pdf'}
    )
    return client


@pytest.fixture()
def notificador(config: Config) -> Notificador:
    """Notificador real para armar los correos, con el envío SMTP simulado."""
    notificador = Notificador(config)
    notificador.enviar = AsyncMock()
    return notificador


@pytest.fixture()
def client(config, shipengine, notificador):
    app.dependency_overrides[get_config] = lambda: config
    app.dependency_overrides[get_shipengine_client] = lambda: shipengine
    app.dependency_overrides[get_notificador] = lambda: notificador
    # Sin context manager: no se ejecuta el lifespan, que lee la configuración del entorno
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def firmar_payload():
    """Retorna (cuerpo, firma) para un payload, firmado con el secreto de pruebas."""

    def _firmar(payload: dict, secret: str = IPN_SECRET) -> tuple[str, str]:
        body = encode(payload)
        return body, sign(body, secret)

    return _firmar
