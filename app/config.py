from dataclasses import dataclass, fields
from enum import Enum
from functools import lru_cache
from os import getenv
from typing import Any, Mapping

from dotenv import load_dotenv


class Environments(Enum):
    DEVELOPMENT = 'development'
    STAGING = 'staging'
    PRODUCTION = 'production'


class ConfigError(ValueError):
    """Configuración inválida detectada al construir Config."""


# Variable de entorno -> opción reconocida
ENV_OPTIONS = {
    'NOW_IPN_SECRET': 'ipn_secret',
    'SHIPENGINE_API_KEY': 'shipengine_api_key',
    'SHIPENGINE_BASE_URL': 'shipengine_base_url',
    'SHIPENGINE_SERVICE_CODE': 'shipengine_service_code',
    'ADMIN_EMAIL': 'admin_email',
    'SMTP_HOST': 'smtp_host',
    'SMTP_PORT': 'smtp_port',
    'SMTP_USER': 'smtp_user',
    'SMTP_PASS': 'smtp_password',
    'SMTP_STARTTLS': 'smtp_starttls',
    'MAIL_DOMAIN': 'mail_domain',
    'ENVIRONMENT': 'environment',
}

REQUIRED_OPTIONS = ('ipn_secret', 'shipengine_api_key', 'admin_email', 'smtp_host')

_TRUE_VALUES = {'1', 'true', 'yes', 'on'}
_FALSE_VALUES = {'0', 'false', 'no', 'off', ''}


@dataclass(frozen=True)
class Config:
    # Obligatorias
    ipn_secret: str
    shipengine_api_key: str
    admin_email: str
    smtp_host: str

    # ShipEngine
    shipengine_base_url: str = 'https://api.shipengine.com'
    shipengine_service_code: str = 'ups_ground'

    # SMTP
    smtp_port: int = 587
    smtp_user: str = ''
    smtp_password: str = ''
    smtp_starttls: bool = True
    mail_domain: str = 'yourdomain.com'

    # General
    environment: str = Environments.DEVELOPMENT.value

    @property
    def mail_from(self) -> str:
        return f'no-reply@{self.mail_domain}'

    @classmethod
    def options(cls) -> set[str]:
        return {f.name for f in fields(cls)}

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> 'Config':
        """
        Construye la configuración a partir de un diccionario de opciones.

        Se rechazan opciones desconocidas y valores obligatorios vacíos. Un
        secreto IPN vacío no se admite: sin él cualquier firma se validaría
        contra una clave vacía.

        Raises:
            ConfigError: si alguna opción es desconocida o inválida.
        """
        unknown = set(options) - cls.options()
        if unknown:
            raise ConfigError(f'Opciones no reconocidas: {", ".join(sorted(unknown))}')

        # Variables de entorno vacías equivalen a no definidas
        values = {k: v for k, v in options.items() if v is not None and v != ''}
        missing = [name for name in REQUIRED_OPTIONS if not str(values.get(name, '')).strip()]
        if missing:
            raise ConfigError(f'Opciones obligatorias sin valor: {", ".join(missing)}')

        if 'smtp_port' in values:
            values['smtp_port'] = _parse_port(values['smtp_port'])
        if 'smtp_starttls' in values:
            values['smtp_starttls'] = _parse_bool('smtp_starttls', values['smtp_starttls'])
        if 'environment' in values:
            values['environment'] = str(values['environment']).lower()
        if 'shipengine_base_url' in values:
            values['shipengine_base_url'] = str(values['shipengine_base_url']).rstrip('/')

        return cls(**values)

    @classmethod
    def from_env(cls) -> 'Config':
        load_dotenv()
        options = {option: getenv(env_name) for env_name, option in ENV_OPTIONS.items()}
        # Vercel expone el dominio del despliegue en VERCEL_URL
        if not options['mail_domain']:
            options['mail_domain'] = getenv('VERCEL_URL')
        return cls.from_options(options)


def _parse_port(value: Any) -> int:
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f'smtp_port inválido: {value!r}')
    if not 0 < port < 65536:
        raise ConfigError(f'smtp_port fuera de rango: {port}')
    return port


def _parse_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigError(f'{name} inválido: {value!r}')


@lru_cache
def get_config() -> Config:
    """Configuración del proceso, construida una sola vez."""
    return Config.from_env()
