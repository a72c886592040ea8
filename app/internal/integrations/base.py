import json
from asyncio import wait_for

import httpx


class ClientException(Exception):
    def __init__(
        self,
        *,
        payload: dict | None = None,
        url: str | None = None,
        response: dict | None = None,
        msg: str | None = None,
    ):
        self.url = url
        self.payload = payload
        self.response = response
        self.msg = msg
        super().__init__(msg)

    @property
    def status_code(self) -> int | None:
        """Status HTTP de la respuesta; None si no hubo respuesta (timeout o error de red)."""
        return (self.response or {}).get('status_code')

    def __str__(self):
        _str = f'\nmsg: {self.msg}' if self.msg else ''
        _str += f'\nurl: {self.url}' if self.url else ''
        _str += f'\npayload: {json.dumps(self.payload)}' if self.payload else ''
        _str += f'\nresponse: {self.response}' if self.response else ''
        return _str

    def __repr__(self):
        return self.__str__()


class BaseClient:
    exception_class: type[ClientException] = ClientException

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None):
        # transport permite inyectar httpx.MockTransport en pruebas
        self._transport = transport

    async def request(
        self,
        method: str,
        headers: dict,
        url: str,
        payload: dict | None = None,
        timeout: float = 30,
    ):
        """
        Realiza la petición y retorna el cuerpo JSON.

        timeout limita la llamada completa, no cada fase (conexión, lectura) por separado.

        Raises:
            ClientException: por timeout, error de red, status >= 400 o respuesta que no es JSON.
        """
        async with httpx.AsyncClient(timeout=httpx.Timeout(float(timeout)), transport=self._transport) as client:
            try:
                response = await wait_for(client.request(method, url, headers=headers, json=payload), timeout)
            except (httpx.TimeoutException, TimeoutError) as e:
                raise self.exception_class(payload=payload, url=url, msg=f'Timeout de {timeout}s: {e!r}')
            except httpx.HTTPError as e:
                raise self.exception_class(payload=payload, url=url, msg=f'Error de conexión: {e!r}')

            if response.is_error:
                raise self.exception_class(
                    payload=payload,
                    url=url,
                    response={'status_code': response.status_code, 'content': response.text},
                    msg=f'Status {response.status_code}',
                )
            try:
                return response.json()
            except (ValueError, httpx.DecodingError):
                raise self.exception_class(
                    payload=payload,
                    url=url,
                    response={'status_code': response.status_code, 'content': response.text},
                    msg='Respuesta no es JSON',
                )
