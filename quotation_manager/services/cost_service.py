"""
Cost calculation engine for catalog products.

Turns geometry + material + selected services into a weight, a surface area,
a material cost, a services cost and a unit cost.

Rounding rules (kept exactly, totals in saved products depend on them):
- weight is rounded to 1 decimal (kg)
- surface area is rounded to 4 decimals (m²)
- material cost and every service cost are rounded to 2 decimals at the
  point of computation, and the unit cost is the sum of those rounded parts

Reference data (materials, services) must be fully loaded by the caller
before calling in here; a lookup miss degrades to zero, it does not wait.
"""

import copy
import logging
import os
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from quotation_manager.schemas.catalog_model import (
    Dimensions,
    MaterialRecord,
    ServiceRecord,
    ServiceUnit,
    UNKNOWN_SERVICE_NAME,
)
from quotation_manager.shared.serialization import to_decimal

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv('LOG_LEVEL', 'INFO'))

ZERO = Decimal('0')
CENTS = Decimal('0.01')
TENTHS = Decimal('0.1')
AREA_PLACES = Decimal('0.0001')

# Stored densities above this are kg/m³ rather than g/cm³
DENSITY_KG_M3_THRESHOLD = Decimal('100')


@dataclass
class CostBreakdown:
    """Full cost derivation for one catalog product."""

    weight: Decimal = ZERO
    area_m2: Decimal = ZERO
    material_cost: Decimal = ZERO
    material_unit_price: Decimal = ZERO
    services_cost: Decimal = ZERO
    services: List[Dict[str, Any]] = field(default_factory=list)
    total_cost: Decimal = ZERO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weight": self.weight,
            "area_m2": self.area_m2,
            "material_cost": self.material_cost,
            "material_unit_price": self.material_unit_price,
            "services_cost": self.services_cost,
            "services": self.services,
            "total_cost": self.total_cost,
        }


def round_money(value: Any) -> Decimal:
    """Round to cents, half-up."""
    return to_decimal(value, ZERO).quantize(CENTS, rounding=ROUND_HALF_UP)


def normalize_density(density: Any) -> Decimal:
    """Return density in g/cm³, reading values above 100 as kg/m³."""
    value = to_decimal(density, ZERO)
    if value > DENSITY_KG_M3_THRESHOLD:
        return value / Decimal('1000')
    return value


def find_material(materials: Iterable[MaterialRecord], name: Optional[str]) -> Optional[MaterialRecord]:
    """Find a material by exact name."""
    if not name:
        return None
    for material in materials or []:
        if material.get("name") == name:
            return material
    return None


def _service_index(
    service_catalog: Union[Mapping[str, ServiceRecord], Iterable[ServiceRecord], None]
) -> Dict[str, ServiceRecord]:
    if not service_catalog:
        return {}
    if isinstance(service_catalog, Mapping):
        return dict(service_catalog)
    return {service.get("id"): service for service in service_catalog}


def _dimension_values(dimensions: Dimensions) -> tuple:
    return (
        to_decimal(dimensions.length, ZERO),
        to_decimal(dimensions.width, ZERO),
        to_decimal(dimensions.thickness, ZERO),
    )


def compute_weight(dimensions: Dimensions, material: Optional[MaterialRecord]) -> Decimal:
    """
    Weight in kg (1 decimal) of a rectangular plate.

    Returns 0 when the material is missing or has no density, or when a
    dimension is not positive.
    """
    if not material:
        return ZERO.quantize(TENTHS)

    density = normalize_density(material.get("density"))
    if not density:
        logger.debug(f"[COST] Material {material.get('name')!r} has no density, weight = 0")
        return ZERO.quantize(TENTHS)

    length, width, thickness = _dimension_values(dimensions)
    if length <= 0 or width <= 0 or thickness <= 0:
        return ZERO.quantize(TENTHS)

    volume_cm3 = length * width * thickness / Decimal('1000')
    weight_g = volume_cm3 * density
    return (weight_g / Decimal('1000')).quantize(TENTHS, rounding=ROUND_HALF_UP)


def compute_surface_area_m2(dimensions: Dimensions) -> Decimal:
    """Area of the six faces of the plate in m² (4 decimals)."""
    length, width, thickness = _dimension_values(dimensions)
    area_mm2 = 2 * (length * width + length * thickness + width * thickness)
    return (area_mm2 / Decimal('1000000')).quantize(AREA_PLACES, rounding=ROUND_HALF_UP)


def compute_material_cost(weight_kg: Any, material: Optional[MaterialRecord]) -> Decimal:
    """weight × price per kg, rounded to cents; 0 when either is missing."""
    weight = to_decimal(weight_kg, ZERO)
    if not material or weight <= 0:
        return ZERO.quantize(CENTS)
    price = to_decimal(material.get("price_per_kg"), ZERO)
    if not price:
        return ZERO.quantize(CENTS)
    return round_money(weight * price)


def initial_service_value(service: Optional[ServiceRecord], weight_kg: Any, area_m2: Any) -> Decimal:
    """Quantity a service starts with when it is first selected."""
    unit = (service or {}).get("unit")
    if unit == ServiceUnit.PER_KG:
        return to_decimal(weight_kg, ZERO)
    if unit == ServiceUnit.PER_SQUARE_METER:
        return to_decimal(area_m2, ZERO).quantize(AREA_PLACES, rounding=ROUND_HALF_UP)
    return Decimal('1')


def compute_services_cost(
    selected_services: Optional[List[Dict[str, Any]]],
    service_catalog: Union[Mapping[str, ServiceRecord], Iterable[ServiceRecord], None],
    weight_kg: Any = ZERO,
    area_m2: Any = ZERO
) -> Dict[str, Any]:
    """
    Cost of the selected services.

    Args:
        selected_services: [{service_id, value}] as stored on the product
        service_catalog: Service records (list or {id: record})
        weight_kg: Product weight, used when a kg service has no stored value
        area_m2: Surface area, used when an m² service has no stored value

    Returns:
        {"total": Decimal, "breakdown": [per-service dict]}; unknown service
        ids appear in the breakdown flagged ``unknown`` with zero cost
    """
    index = _service_index(service_catalog)
    total = ZERO.quantize(CENTS)
    breakdown: List[Dict[str, Any]] = []

    for selected in selected_services or []:
        service_id = selected.get("service_id")
        service = index.get(service_id)

        if service is None:
            logger.warning(f"[COST] Unknown service id {service_id!r} in selected services")
            breakdown.append({
                "service_id": service_id,
                "name": UNKNOWN_SERVICE_NAME,
                "unit": None,
                "unit_price": ZERO,
                "quantity": to_decimal(selected.get("value"), ZERO),
                "cost": ZERO.quantize(CENTS),
                "unknown": True,
            })
            continue

        unit_price = to_decimal(service.get("unit_price"), ZERO)
        if not unit_price:
            continue

        if service.get("unit") == ServiceUnit.FIXED:
            quantity = Decimal('1')
        else:
            quantity = to_decimal(selected.get("value"))
            if quantity is None:
                quantity = initial_service_value(service, weight_kg, area_m2)

        cost = round_money(quantity * unit_price)
        total += cost
        breakdown.append({
            "service_id": service_id,
            "name": service.get("name", ""),
            "unit": service.get("unit"),
            "unit_price": unit_price,
            "quantity": quantity,
            "cost": cost,
            "unknown": False,
        })

    return {"total": total, "breakdown": breakdown}


def compute_unit_cost(material_cost: Any, service_costs: Iterable[Any] = ()) -> Decimal:
    """Sum of the material cost and the service costs, each rounded to cents first."""
    total = round_money(material_cost)
    for cost in service_costs:
        total += round_money(cost)
    return total


def calculate_product_costs(
    product: Dict[str, Any],
    materials: Iterable[MaterialRecord],
    services: Union[Mapping[str, ServiceRecord], Iterable[ServiceRecord], None]
) -> CostBreakdown:
    """Run the whole cost chain for a catalog product using its current weight."""
    dimensions = Dimensions.from_product(product)
    material = find_material(materials, product.get("material"))
    if product.get("material") and material is None:
        logger.warning(f"[COST] Material {product.get('material')!r} not found, material cost = 0")

    weight = to_decimal(product.get("weight"), ZERO)
    area = compute_surface_area_m2(dimensions)
    material_cost = compute_material_cost(weight, material)
    services_result = compute_services_cost(product.get("selected_services"), services, weight, area)

    return CostBreakdown(
        weight=weight,
        area_m2=area,
        material_cost=material_cost,
        material_unit_price=to_decimal((material or {}).get("price_per_kg"), ZERO),
        services_cost=services_result["total"],
        services=services_result["breakdown"],
        total_cost=compute_unit_cost(material_cost, [entry["cost"] for entry in services_result["breakdown"]]),
    )


def toggle_service(
    product: Dict[str, Any],
    service_id: str,
    services: Union[Mapping[str, ServiceRecord], Iterable[ServiceRecord], None]
) -> Dict[str, Any]:
    """
    Select or deselect a service on a product (returns a new product dict).

    A newly selected kg service starts at the product weight, an m² service
    at the surface area, anything else at 1.
    """
    updated = dict(product)
    current = list(product.get("selected_services") or [])

    if any(entry.get("service_id") == service_id for entry in current):
        updated["selected_services"] = [entry for entry in current if entry.get("service_id") != service_id]
        return updated

    service = _service_index(services).get(service_id)
    value = initial_service_value(
        service,
        product.get("weight") or 0,
        compute_surface_area_m2(Dimensions.from_product(product)),
    )
    updated["selected_services"] = current + [{"service_id": service_id, "value": value}]
    return updated


def recalculate_product(
    product: Dict[str, Any],
    materials: Iterable[MaterialRecord],
    services: Union[Mapping[str, ServiceRecord], Iterable[ServiceRecord], None],
    *,
    is_edit: bool = False,
    manual_weight: bool = False,
    manual_price: bool = False
) -> Dict[str, Any]:
    """
    Recompute the derived fields of a product after a geometry, material or
    service change.

    - weight is recomputed unless ``manual_weight``
    - on a new product, kg / m² service quantities follow the new weight / area;
      on an edited product saved service quantities are left untouched
    - unit_cost is recomputed unless ``manual_price``; a manual unit cost is
      kept verbatim and only rejected when negative

    Raises:
        ValueError: if a manual unit cost is negative
    """
    materials = list(materials or [])
    index = _service_index(services)
    updated = copy.deepcopy(product)

    if not manual_weight:
        dimensions = Dimensions.from_product(updated)
        weight = compute_weight(dimensions, find_material(materials, updated.get("material")))
        area = compute_surface_area_m2(dimensions)
        updated["weight"] = weight

        if not is_edit:
            refreshed = []
            for entry in updated.get("selected_services") or []:
                unit = (index.get(entry.get("service_id")) or {}).get("unit")
                if unit == ServiceUnit.PER_KG:
                    entry = {**entry, "value": weight}
                elif unit == ServiceUnit.PER_SQUARE_METER:
                    entry = {**entry, "value": area}
                refreshed.append(entry)
            updated["selected_services"] = refreshed

    if manual_price:
        unit_cost = to_decimal(updated.get("unit_cost"), ZERO)
        if unit_cost < 0:
            raise ValueError("unit_cost must be >= 0")
        updated["unit_cost"] = unit_cost
    else:
        updated["unit_cost"] = calculate_product_costs(updated, materials, index).total_cost

    return updated
