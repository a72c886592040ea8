# app.models.pydantic.shipengine.label

# Modelos para la creación de etiquetas en ShipEngine
# https://www.shipengine.com/docs/labels/create-a-label/

from enum import Enum

from pydantic import Field

from app.models.pydantic.base import Base
from app.models.pydantic.nowpayments.ipn import PagoIPN


class WeightUnit(Enum):
    POUND = 'pound'
    OUNCE = 'ounce'
    GRAM = 'gram'
    KILOGRAM = 'kilogram'


class Address(Base):
    name: str = ''
    phone: str = ''
    address_line1: str = ''
    city_locality: str = ''
    postal_code: str = ''
    country_code: str = ''


class Weight(Base):
    value: int | float = 1
    unit: WeightUnit = WeightUnit.POUND


class Package(Base):
    weight: Weight = Weight()


class Shipment(Base):
    validate_address: bool = False
    service_code: str = 'ups_ground'
    ship_to: Address = Address()
    ship_from: Address = Address()
    # Un solo paquete de peso fijo por pedido
    packages: list[Package] = Field(default_factory=lambda: [Package()])


class ShipmentRequest(Base):
    shipment: Shipment

    @classmethod
    def from_pago(cls, pago: PagoIPN, service_code: str = 'ups_ground') -> 'ShipmentRequest':
        return cls(
            shipment=Shipment(
                service_code=service_code,
                ship_to=Address(
                    name=pago.to_name,
                    phone=pago.to_phone,
                    address_line1=pago.to_address,
                    city_locality=pago.to_city,
                    postal_code=pago.to_postal,
                    country_code=pago.to_country,
                ),
                ship_from=Address(
                    name=pago.from_name,
                    phone=pago.from_phone,
                    address_line1=pago.from_address,
                    city_locality=pago.from_city,
                    postal_code=pago.from_postal,
                    country_code=pago.from_country,
                ),
            )
        )


class LabelDownload(Base):
    href: str | None = None
    pdf: str | None = None
    png: str | None = None
    zpl: str | None = None


class LabelResponse(Base):
    """
    Respuesta de POST /v1/labels. Según la versión de la API el enlace llega en
    label_download.href o en pdf_url.
    """

    label_id: str | None = None
    status: str | None = None
    tracking_number: str | None = None
    label_download: LabelDownload | None = None
    pdf_url: str | None = None

    @property
    def label_url(self) -> str | None:
        if self.label_download and self.label_download.href:
            return self.label_download.href
        return self.pdf_url or None
