# app/internal/log.py
import logging
from enum import Enum
from os import getenv
from sys import stdout


class LogLevel(Enum):
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


def nivel_por_defecto() -> LogLevel:
    """Nivel tomado de LOG_LEVEL; INFO si no está definido o no es válido."""
    return LogLevel.__members__.get(getenv('LOG_LEVEL', '').strip().upper(), LogLevel.INFO)


def factory_logger(name: str, level: LogLevel | None = None):
    """
    Crea un logger a consola (stdout). En serverless el sistema de archivos es de solo
    lectura, los logs se recogen desde la salida estándar.

    Args:
        name: Nombre del logger
        level: Nivel de logging (default: LOG_LEVEL o INFO)
    """
    logger = logging.getLogger(name)
    logger.setLevel((level or nivel_por_defecto()).value)

    # Evitar duplicar handlers si el logger ya existe
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        fmt='\n%(asctime)s - %(name)s - %(levelname)s - %(pathname)s:%(lineno)d\n%(message)s\n'
    )

    console_handler = logging.StreamHandler(stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger
