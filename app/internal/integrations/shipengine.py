import httpx
from pydantic import ValidationError

from app.config import Config
from app.internal.integrations.base import BaseClient, ClientException
from app.internal.log import factory_logger
from app.models.pydantic.shipengine.label import LabelResponse, ShipmentRequest

log_shipengine = factory_logger('shipengine')


class ShipEngineException(ClientException):
    pass


class ShipEngineClient(BaseClient):
    exception_class = ShipEngineException
    timeout = 15

    class Paths:
        class labels:
            root = '/v1/labels'

    def __init__(self, config: Config, transport: httpx.AsyncBaseTransport | None = None):
        super().__init__(transport=transport)
        self.host = config.shipengine_base_url
        self.api_key = config.shipengine_api_key

    @property
    def headers(self) -> dict:
        return {'Content-Type': 'application/json', 'API-Key': self.api_key}

    async def crear_etiqueta(self, shipment_request: ShipmentRequest) -> LabelResponse:
        """
        Solicita la etiqueta. Una respuesta 2xx siempre significa etiqueta creada: si no trae
        ninguno de los formatos de enlace conocidos se retorna sin label_url.

        Raises:
            ShipEngineException: por timeout, error de red o status >= 400.
        """
        url = f'{self.host}{self.Paths.labels.root}'
        payload = shipment_request.model_dump(mode='json')
        try:
            label_json = await self.request('POST', self.headers, url, payload=payload, timeout=self.timeout)
        except ShipEngineException as e:
            if e.status_code is None or e.status_code >= 400:
                raise
            log_shipengine.warning(f'Respuesta de etiqueta no es JSON: {e}')
            return LabelResponse()

        if not isinstance(label_json, dict):
            log_shipengine.warning(f'Respuesta de etiqueta inesperada: {str(label_json)[:500]}')
            return LabelResponse()
        try:
            label = LabelResponse(**label_json)
        except ValidationError as e:
            log_shipengine.warning(f'Respuesta de etiqueta con formato desconocido: {e}')
            return LabelResponse()

        if label.label_url is None:
            log_shipengine.warning(f'Etiqueta {label.label_id} creada sin enlace de descarga')
        return label
