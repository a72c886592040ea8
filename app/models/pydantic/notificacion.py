# app.models.pydantic.notificacion

from app.models.pydantic.base import Base


class Correo(Base):
    to: str
    subject: str
    text: str
    html: str | None = None
