"""
Data models for the product catalog and its reference data (materials, services).
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, TypedDict


class ServiceUnit(str, Enum):
    """Measurement unit a service is billed in."""
    PER_PIECE = "pza"
    PER_KG = "kg"
    PER_SQUARE_METER = "m2"
    PER_LINEAR_METER = "m"
    PER_HOLE = "agujeros"
    FIXED = "fijo"
    PER_QUANTITY = "cantidad"


class ServiceProvider(str, Enum):
    """Who performs the service."""
    IN_HOUSE = "inventu_lab"
    EXTERNAL = "externo"


UNIT_LABELS = {
    ServiceUnit.PER_PIECE.value: "pza",
    ServiceUnit.PER_KG.value: "kg",
    ServiceUnit.PER_SQUARE_METER.value: "m²",
    ServiceUnit.PER_LINEAR_METER.value: "m",
    ServiceUnit.PER_HOLE.value: "agujeros",
    ServiceUnit.FIXED.value: "fijo",
    ServiceUnit.PER_QUANTITY.value: "u.",
}

UNKNOWN_SERVICE_NAME = "Servicio desconocido"


@dataclass(frozen=True)
class Dimensions:
    """Part geometry in millimeters."""

    length: float
    width: float
    thickness: float

    @classmethod
    def from_product(cls, product: Dict[str, Any]) -> "Dimensions":
        return cls(
            length=product.get("length") or 0,
            width=product.get("width") or 0,
            thickness=product.get("thickness") or 0,
        )


class MaterialRecord(TypedDict, total=False):
    """Material reference data. Looked up by exact name.

    density is g/cm³ or kg/m³; values above 100 are read as kg/m³.
    """

    id: str
    name: str
    price_per_kg: Any
    density: Any
    created_at: str
    updated_at: str


class ServiceRecord(TypedDict, total=False):
    """Service reference data. Looked up by id."""

    id: str
    name: str
    unit_price: Any
    unit: str
    provider: str
    description: Optional[str]
    created_at: str
    updated_at: str


class SelectedService(TypedDict):
    """A service chosen for a product; value meaning depends on the unit."""

    service_id: str
    value: Any


class SaleRecord(TypedDict, total=False):
    """Past sale of a catalog product."""

    id: str
    client_name: str
    quantity: int
    unit_price: Any
    total_price: Any
    date: str
    notes: Optional[str]
    status: str
    reason: Optional[str]


class CatalogProduct(TypedDict, total=False):
    """Catalog product record."""

    id: str
    competitor_code: Optional[str]
    brand: str
    machine_type: str
    length: Any
    width: Any
    thickness: Any
    weight: Any
    material: str
    hardness: Optional[str]
    heat_treatment: Optional[str]
    min_lot: int
    unit_cost: Any
    photo: Optional[str]
    competitor_drawing: Optional[str]
    own_drawing: Optional[str]
    selected_services: List[SelectedService]
    sales_history: List[SaleRecord]
    created_date: Optional[str]
    last_modified: str


def create_catalog_product(data: Dict[str, Any], product_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Create a catalog product dictionary from form data.

    Missing numeric fields default to 0 and lists to empty.
    """
    now = datetime.utcnow().isoformat() + "Z"
    return {
        "id": product_id or data.get("id") or str(uuid.uuid4()),
        "competitor_code": data.get("competitor_code") or "",
        "brand": data.get("brand") or "",
        "machine_type": data.get("machine_type") or "",
        "length": data.get("length") or 0,
        "width": data.get("width") or 0,
        "thickness": data.get("thickness") or 0,
        "weight": data.get("weight") or 0,
        "material": data.get("material") or "",
        "hardness": data.get("hardness"),
        "heat_treatment": data.get("heat_treatment"),
        "min_lot": data.get("min_lot") or 1,
        "unit_cost": data.get("unit_cost") or 0,
        "photo": data.get("photo"),
        "competitor_drawing": data.get("competitor_drawing"),
        "own_drawing": data.get("own_drawing"),
        "selected_services": list(data.get("selected_services") or []),
        "sales_history": list(data.get("sales_history") or []),
        "created_date": data.get("created_date") or now,
        "last_modified": now,
    }


def create_sale_record(data: Dict[str, Any], sale_id: Optional[str] = None) -> Dict[str, Any]:
    """Create a sale record dictionary."""
    return {
        "id": sale_id or data.get("id") or str(uuid.uuid4()),
        "client_name": data.get("client_name") or "",
        "quantity": data.get("quantity") or 0,
        "unit_price": data.get("unit_price") or 0,
        "total_price": data.get("total_price") or 0,
        "date": data.get("date") or datetime.utcnow().date().isoformat(),
        "notes": data.get("notes"),
        "status": data.get("status") or "pending",
        "reason": data.get("reason"),
    }
