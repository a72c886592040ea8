# app/routers/auth.py
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from app.config import Config, get_config
from app.internal.firma import SIGNATURE_HEADER, verificar_firma_nowpayments
from app.internal.log import factory_logger

log_auth = factory_logger('auth')

ConfigDep = Annotated[Config, Depends(get_config)]


class AuthException:
    hmac_validation_failed = HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail='invalid signature',
    )


# Webhooks NOWPayments
async def hmac_validation_nowpayments(request: Request, config: ConfigDep) -> bool:
    """
    Valida la firma IPN de NOWPayments sobre el cuerpo crudo de la solicitud.
    Los headers de Starlette no distinguen mayúsculas, x-nowpayments-sig y X-Nowpayments-Sig son el mismo.
    """
    body = await request.body()
    received_sig = request.headers.get(SIGNATURE_HEADER, '')
    if not verificar_firma_nowpayments(body, received_sig, config.ipn_secret):
        log_auth.warning('Firma NOWPayments inválida')
        raise AuthException.hmac_validation_failed
    return True
