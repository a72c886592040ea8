"""Cliente de ShipEngine contra un transporte httpx simulado."""

import asyncio
import json

import httpx
import pytest

from app.internal.integrations.shipengine import ShipEngineClient, ShipEngineException
from app.models.pydantic.nowpayments.ipn import PagoIPN
from app.models.pydantic.shipengine.label import ShipmentRequest


def _shipment_request() -> ShipmentRequest:
    pago = PagoIPN(**{'to_name': 'Ana', 'to_city': 'Utrecht', 'from_country': 'BE'})
    return ShipmentRequest.from_pago(pago)


def _client(config, handler) -> ShipEngineClient:
    return ShipEngineClient(config, transport=httpx.MockTransport(handler))


class TestShipmentRequest:
    def test_body(self):
        body = _shipment_request().model_dump(mode='json')
        shipment = body['shipment']
        assert shipment['validate_address'] is False
        assert shipment['service_code'] == 'ups_ground'
        assert shipment['ship_to'] == {
            'name': 'Ana',
            'phone': '',
            'address_line1': 'Straat 1',
            'city_locality': 'Utrecht',
            'postal_code': '0000AA',
            'country_code': 'NL',
        }
        assert shipment['ship_from']['name'] == 'Afzender'
        assert shipment['ship_from']['country_code'] == 'BE'
        assert shipment['packages'] == [{'weight': {'value': 1, 'unit': 'pound'}}]


class TestCrearEtiqueta:
    @pytest.mark.asyncio
    async def test_sends_request_and_reads_label_download(self, config):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(
                200, json={'label_id': 'se-1', 'label_download': {'href': 'https://labels.example.com/se-1.pdf'}}
            )

        label = await _client(config, handler).crear_etiqueta(_shipment_request())

        assert label.label_url == 'https://labels.example.com/se-1.pdf'
        assert len(requests) == 1
        request = requests[0]
        assert request.method == 'POST'
        assert str(request.url) == 'https://api.shipengine.com/v1/labels'
        assert request.headers['API-Key'] == 'TEST_shipengine_key'
        assert request.headers['Content-Type'] == 'application/json'
        assert json.loads(request.content)['shipment']['ship_to']['name'] == 'Ana'

    @pytest.mark.asyncio
    async def test_pdf_url_shape(self, config):
        def handler(request):
            return httpx.Response(200, json={'pdf_url': 'https://labels.example.com/legacy.pdf'})

        label = await _client(config, handler).crear_etiqueta(_shipment_request())
        assert label.label_url == 'https://labels.example.com/legacy.pdf'

    @pytest.mark.asyncio
    async def test_no_link_is_not_an_error(self, config):
        def handler(request):
            return httpx.Response(200, json={'label_id': 'se-3', 'label_download': {}})

        label = await _client(config, handler).crear_etiqueta(_shipment_request())
        assert label.label_url is None

    @pytest.mark.asyncio
    async def test_http_error(self, config):
        def handler(request):
            return httpx.Response(400, json={'errors': [{'message': 'insufficient funds'}]})

        with pytest.raises(ShipEngineException) as exc_info:
            await _client(config, handler).crear_etiqueta(_shipment_request())
        assert exc_info.value.response['status_code'] == 400
        assert 'insufficient funds' in exc_info.value.response['content']

    @pytest.mark.asyncio
    async def test_timeout(self, config):
        def handler(request):
            raise httpx.ReadTimeout('timed out', request=request)

        with pytest.raises(ShipEngineException, match='Timeout'):
            await _client(config, handler).crear_etiqueta(_shipment_request())

    @pytest.mark.asyncio
    async def test_connection_error(self, config):
        def handler(request):
            raise httpx.ConnectError('refused', request=request)

        with pytest.raises(ShipEngineException):
            await _client(config, handler).crear_etiqueta(_shipment_request())


    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        'response',
        [
            httpx.Response(200, text='created'),
            httpx.Response(201, json=[]),
            httpx.Response(200, json={'pdf_url': 5}),
            httpx.Response(200, json={'label_download': 'https://labels.example.com/x.pdf'}),
        ],
    )
    async def test_success_without_known_shape_has_no_link(self, config, response):
        label = await _client(config, lambda request: response).crear_etiqueta(_shipment_request())
        assert label.label_url is None

    @pytest.mark.asyncio
    async def test_non_json_error_still_raises(self, config):
        def handler(request):
            return httpx.Response(502, text='<html>bad gateway</html>')

        with pytest.raises(ShipEngineException) as exc_info:
            await _client(config, handler).crear_etiqueta(_shipment_request())
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_timeout_covers_whole_call(self, config):
        async def handler(request):
            await asyncio.sleep(5)
            return httpx.Response(200, json={'pdf_url': 'https://labels.example.com/late.pdf'})

        client = _client(config, handler)
        client.timeout = 0.05
        with pytest.raises(ShipEngineException, match='Timeout') as exc_info:
            await client.crear_etiqueta(_shipment_request())
        assert exc_info.value.status_code is None

    def test_label_timeout_is_fifteen_seconds(self, config):
        assert ShipEngineClient(config).timeout == 15
