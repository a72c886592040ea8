# app/internal/pagos.py
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, localcontext
from enum import Enum

from app.internal.integrations.base import ClientException
from app.internal.integrations.email import NotificationException, Notificador
from app.internal.integrations.shipengine import ShipEngineClient
from app.internal.log import factory_logger
from app.models.pydantic.nowpayments.ipn import PagoIPN
from app.models.pydantic.shipengine.label import ShipmentRequest

log_pagos = factory_logger('pagos')

PORCENTAJE_MARGEN = Decimal('0.10')
CENTAVOS = Decimal('0.01')


class ResultadoPago(Enum):
    IGNORADO = 'ignorado'
    PROCESADO = 'procesado'
    ERROR = 'error'


@dataclass(frozen=True)
class Reparto:
    margin: Decimal
    label_amount: Decimal


def calcular_reparto(amount: Decimal | int | float | str) -> Reparto:
    """
    Separa el monto del pago en margen (10%) y monto disponible para la etiqueta.
    Ambos se redondean a 2 decimales y suman el monto redondeado.
    """
    total = Decimal(str(amount))
    # Precisión suficiente para todos los dígitos enteros más los centavos
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, total.adjusted() + 10)
        margin = (total * PORCENTAJE_MARGEN).quantize(CENTAVOS, rounding=ROUND_HALF_UP)
        label_amount = (total - margin).quantize(CENTAVOS, rounding=ROUND_HALF_UP)
    return Reparto(margin=margin, label_amount=label_amount)


async def procesar_pago(
    pago: PagoIPN,
    shipengine: ShipEngineClient,
    notificador: Notificador,
    service_code: str = 'ups_ground',
) -> ResultadoPago:
    """
    Crea la etiqueta de envío de un pago confirmado y la envía por correo.

    Solo se actúa sobre pagos finished/confirmed; el resto se ignora sin llamadas externas.
    Si falla la etiqueta o el correo, se notifica al administrador y se retorna ERROR.
    """
    log_pagos.info(f'Webhook NOWPayments recibido: pedido {pago.order_id}, estado {pago.status}')

    if not pago.pagado:
        return ResultadoPago.IGNORADO

    reparto = calcular_reparto(pago.amount)

    # TODO: validar el saldo de ShipEngine antes de solicitar la etiqueta
    try:
        label = await shipengine.crear_etiqueta(ShipmentRequest.from_pago(pago, service_code))
        await notificador.enviar_etiqueta(pago.order_id, label.label_url, pago.buyer_email)
    except (ClientException, NotificationException) as e:
        log_pagos.error(f'Error procesando pedido {pago.order_id}: {e}')
        await _notificar_error(notificador, pago.order_id, e)
        return ResultadoPago.ERROR

    log_pagos.info(
        f'Pedido {pago.order_id} procesado; margen {reparto.margin} {pago.currency}; '
        f'etiqueta {reparto.label_amount} {pago.currency}'
    )
    return ResultadoPago.PROCESADO


async def _notificar_error(notificador: Notificador, order_id: str, error: Exception):
    # El correo al administrador es best effort: si falla, solo queda en el log
    try:
        await notificador.enviar_error(order_id, error)
    except NotificationException as e:
        log_pagos.error(f'No se pudo notificar al administrador del pedido {order_id}: {e}')
