# app/internal/firma.py
import hashlib
import hmac
import json
import math
from decimal import Decimal
from typing import Any

from app.internal.log import factory_logger

log_firma = factory_logger('firma')

SIGNATURE_HEADER = 'x-nowpayments-sig'


def numero_js(value: float) -> str:
    """
    Escribe un float como lo hace JSON.stringify: 50.0 -> 50, 1e-07 -> 1e-7, 0.00001 sin exponente
    y NaN/Infinity -> null.
    """
    if not math.isfinite(value):
        return 'null'
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    texto = repr(value)
    if 'e' not in texto:
        return texto
    mantisa, exponente = texto.split('e')
    exponente = int(exponente)
    # JS solo usa notación exponencial por debajo de 1e-6 y desde 1e21
    if -7 < exponente < 21:
        return format(Decimal(texto), 'f')
    return f'{mantisa}e{"+" if exponente > 0 else "-"}{abs(exponente)}'


def _a_json(value: Any) -> str:
    if isinstance(value, dict):
        return '{' + ','.join(f'{_a_json(str(k))}:{_a_json(v)}' for k, v in value.items()) + '}'
    if isinstance(value, list):
        return '[' + ','.join(_a_json(v) for v in value) + ']'
    if isinstance(value, float):
        return numero_js(value)
    return json.dumps(value, ensure_ascii=False)


def canonicalizar(payload: dict) -> str:
    """
    Serializa el payload como lo firma NOWPayments: llaves de primer nivel en orden
    alfabético, separadores compactos, caracteres no ASCII sin escapar y números
    con el formato de JSON.stringify. Los objetos anidados conservan su orden.

    Los enteros mayores a 2**53 se escriben completos; JS los redondearía.
    """
    return _a_json({k: payload[k] for k in sorted(payload)})


def firmar(payload: dict, secret: str) -> str:
    return hmac.new(
        secret.encode('utf-8'), msg=canonicalizar(payload).encode('utf-8'), digestmod=hashlib.sha512
    ).hexdigest()


def verificar_firma_nowpayments(raw_body: bytes | str, received_sig: str | None, secret: str) -> bool:
    """
    Valida la firma IPN de NOWPayments (HMAC-SHA512 en hexadecimal).

    Un cuerpo que no es JSON, que no es un objeto o demasiado anidado para procesarlo
    se considera firma inválida. La comparación es sensible a mayúsculas y de tiempo constante.
    """
    try:
        payload = json.loads(raw_body)
        if not isinstance(payload, dict):
            log_firma.error(f'Cuerpo del webhook no es un objeto JSON: {type(payload).__name__}')
            return False
        calculated_sig = firmar(payload, secret)
    except (ValueError, TypeError, RecursionError) as e:
        log_firma.error(f'Cuerpo del webhook no es JSON válido: {type(e).__name__}: {str(e)[:200]}')
        return False

    # compare_digest no acepta str con caracteres no ASCII; se comparan bytes
    return hmac.compare_digest(calculated_sig.encode('utf-8'), str(received_sig or '').encode('utf-8'))
