# app.models.pydantic.nowpayments.ipn

# Modelos de payloads enviados por NOWPayments en notificaciones IPN

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from pydantic import field_validator, model_validator

from app.models.pydantic.base import Base


class PaymentStatus(Enum):
    """
    Estados de pago reportados por NOWPayments.
    Solo FINISHED y CONFIRMED indican que el pago se puede despachar.
    """

    WAITING = 'waiting'
    CONFIRMING = 'confirming'
    CONFIRMED = 'confirmed'
    SENDING = 'sending'
    PARTIALLY_PAID = 'partially_paid'
    FINISHED = 'finished'
    FAILED = 'failed'
    REFUNDED = 'refunded'
    EXPIRED = 'expired'


ESTADOS_PAGADOS = frozenset({PaymentStatus.FINISHED.value, PaymentStatus.CONFIRMED.value})

# Nombre canónico -> llaves aceptadas en el payload, en orden de prioridad.
# Los campos varían según el tipo de IPN (invoice o payment).
CAMPOS_PAYLOAD: dict[str, tuple[str, ...]] = {
    'status': ('status', 'payment_status'),
    'order_id': ('order_id', 'id'),
    'amount': ('price_amount', 'amount'),
    'currency': ('price_currency', 'currency'),
    'buyer_email': ('buyer_email', 'customer_email'),
    'to_name': ('to_name',),
    'to_phone': ('to_phone',),
    'to_address': ('to_address',),
    'to_city': ('to_city',),
    'to_postal': ('to_postal',),
    'to_country': ('to_country',),
    'from_name': ('from_name',),
    'from_phone': ('from_phone',),
    'from_address': ('from_address',),
    'from_city': ('from_city',),
    'from_postal': ('from_postal',),
    'from_country': ('from_country',),
}


def _vacio(value: Any) -> bool:
    return value is None or value is False or value == '' or (isinstance(value, (int, float)) and value == 0)


def primer_valor(data: dict, keys: tuple[str, ...]) -> Any:
    """Retorna el primer valor no vacío entre las llaves dadas, o None."""
    for key in keys:
        value = data.get(key)
        if not _vacio(value):
            return value
    return None


def resolver_campos(data: dict, campos: dict[str, tuple[str, ...]] = CAMPOS_PAYLOAD) -> dict:
    """Aplica la tabla de campos y omite los que no tienen valor, para que apliquen los defaults."""
    resueltos = {}
    for nombre, keys in campos.items():
        value = primer_valor(data, keys)
        if value is not None:
            resueltos[nombre] = value
    return resueltos


class PagoIPN(Base):
    status: str = ''
    order_id: str = ''
    amount: Decimal = Decimal('0')
    currency: str = 'EUR'
    buyer_email: str = ''

    # Destinatario
    to_name: str = 'Ontvanger'
    to_phone: str = ''
    to_address: str = 'Straat 1'
    to_city: str = 'City'
    to_postal: str = '0000AA'
    to_country: str = 'NL'

    # Remitente
    from_name: str = 'Afzender'
    from_phone: str = ''
    from_address: str = 'Jouw Straat 1'
    from_city: str = 'Jouw Stad'
    from_postal: str = '0000AA'
    from_country: str = 'NL'

    @model_validator(mode='before')
    @classmethod
    def mapear_campos(cls, data):
        if not isinstance(data, dict):
            return data
        return resolver_campos(data)

    @field_validator(
        'status',
        'order_id',
        'currency',
        'buyer_email',
        *[name for name in CAMPOS_PAYLOAD if name.startswith(('to_', 'from_'))],
        mode='before',
    )
    @classmethod
    def a_texto(cls, value):
        return str(value)

    @field_validator('amount', mode='before')
    @classmethod
    def parsear_monto(cls, value):
        if isinstance(value, bool):
            return Decimal('0')
        try:
            amount = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return Decimal('0')
        return amount if amount.is_finite() else Decimal('0')

    @property
    def pagado(self) -> bool:
        return self.status in ESTADOS_PAGADOS
