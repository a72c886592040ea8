# app/routers/webhooks.py
import json
from enum import Enum
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import PlainTextResponse

from app.internal.integrations.email import Notificador
from app.internal.integrations.shipengine import ShipEngineClient
from app.internal.pagos import ResultadoPago, procesar_pago
from app.models.pydantic.nowpayments.ipn import PagoIPN
from app.routers.auth import ConfigDep, hmac_validation_nowpayments


class Tags(Enum):
    WEBHOOKS = 'Webhooks'


router = APIRouter(
    prefix='/api',
    tags=[Tags.WEBHOOKS],
)


def get_shipengine_client(config: ConfigDep) -> ShipEngineClient:
    return ShipEngineClient(config)


def get_notificador(config: ConfigDep) -> Notificador:
    return Notificador(config)


ShipEngineDep = Annotated[ShipEngineClient, Depends(get_shipengine_client)]
NotificadorDep = Annotated[Notificador, Depends(get_notificador)]

RESPUESTAS = {
    ResultadoPago.IGNORADO: (status.HTTP_200_OK, 'ignored - not finished'),
    ResultadoPago.PROCESADO: (status.HTTP_200_OK, 'ok'),
    ResultadoPago.ERROR: (status.HTTP_500_INTERNAL_SERVER_ERROR, 'label error'),
}


@router.post(
    '/nowpayments-webhook',
    response_class=PlainTextResponse,
    summary='Recibe notificaciones IPN de NOWPayments',
    description='Crea la etiqueta de envío en ShipEngine para pagos finished/confirmed y la envía por correo.',
    dependencies=[Depends(hmac_validation_nowpayments)],
)
async def recibir_ipn_nowpayments(
    request: Request,
    config: ConfigDep,
    shipengine: ShipEngineDep,
    notificador: NotificadorDep,
):
    # La firma ya validó que el cuerpo es un objeto JSON
    pago = PagoIPN(**json.loads(await request.body()))
    resultado = await procesar_pago(pago, shipengine, notificador, config.shipengine_service_code)
    status_code, content = RESPUESTAS[resultado]
    return PlainTextResponse(content, status_code=status_code)
