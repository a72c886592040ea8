# main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.config import get_config
from app.routers import webhooks
from app.internal.log import factory_logger

logger = factory_logger('main')


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Una configuración inválida detiene el arranque en lugar de fallar en cada webhook
    config = get_config()
    logger.info(f'Webhook NOWPayments listo ({config.environment})')
    yield


# Crea la instancia de la aplicación FastAPI
app = FastAPI(
    title='Webhook NOWPayments',
    description='Recibe pagos de NOWPayments y genera etiquetas de envío en ShipEngine.',
    version='1.0.0',
    lifespan=lifespan,
)

app.include_router(webhooks.router)


# Ruta raíz simple para verificar que la API está funcionando
@app.get('/', tags=['Root'])
async def read_root():
    """Ruta raíz de la API."""
    return {'message': 'Webhook NOWPayments'}
