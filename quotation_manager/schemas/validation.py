"""
Input validation for the quotation manager API.
"""

from typing import Dict, Any, Optional

from .catalog_model import ServiceProvider, ServiceUnit
from .quotation_model import ItemType, QuotationStatus


def validate_quotation_status(status: str) -> bool:
    """Validate quotation status."""
    try:
        QuotationStatus(status)
        return True
    except ValueError:
        return False


def validate_item_type(item_type: str) -> bool:
    """Validate quotation item type."""
    try:
        ItemType(item_type)
        return True
    except ValueError:
        return False


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    try:
        float(value)
        return True
    except (ValueError, TypeError):
        return False


def _is_positive_whole(value: Any) -> bool:
    return _is_number(value) and float(value) >= 1 and float(value).is_integer()


def _is_blank(value: Any) -> bool:
    """Anything but a string with visible characters."""
    return not isinstance(value, str) or not value.strip()


def validate_quotation_item(data: Dict[str, Any]) -> tuple[bool, Optional[str]]:
    """
    Validate one quotation item of a create/update request.

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(data, dict):
        return False, "Item must be a JSON object"

    item_type = data.get("type", ItemType.CATALOG.value)
    if not validate_item_type(item_type):
        return False, f"Invalid item type: {item_type}"

    if not _is_positive_whole(data.get("quantity")):
        return False, "quantity must be a whole number >= 1"

    if "markup" in data and data["markup"] is not None and not _is_number(data["markup"]):
        return False, "markup must be a number"

    if item_type == ItemType.CATALOG:
        if not data.get("catalog_product_id") and not data.get("catalog_product"):
            return False, "Catalog items require catalog_product_id"
    else:
        if _is_blank(data.get("description")):
            return False, "Custom items require a description"
        if not _is_number(data.get("base_cost")) or float(data["base_cost"]) <= 0:
            return False, "base_cost must be a number > 0"

    return True, None


def _validate_common_quotation_fields(data: Dict[str, Any]) -> tuple[bool, Optional[str]]:
    if "status" in data and not validate_quotation_status(data["status"]):
        return False, f"Invalid status: {data['status']}"

    if "items" in data:
        if not isinstance(data["items"], list):
            return False, "items must be a list"
        for index, item in enumerate(data["items"]):
            is_valid, error = validate_quotation_item(item)
            if not is_valid:
                return False, f"Item {index + 1}: {error}"

    return True, None


def validate_create_quotation(data: Dict[str, Any]) -> tuple[bool, Optional[str]]:
    """
    Validate create quotation request.

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    if _is_blank(data.get("client_name")):
        return False, "client_name is required"

    if not data.get("items"):
        return False, "At least one item is required"

    return _validate_common_quotation_fields(data)


def validate_update_quotation(data: Dict[str, Any]) -> tuple[bool, Optional[str]]:
    """
    Validate update quotation request.

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    if "client_name" in data and _is_blank(data["client_name"]):
        return False, "client_name cannot be empty"

    if "items" in data and not data["items"]:
        return False, "At least one item is required"

    return _validate_common_quotation_fields(data)


def validate_status_update(data: Dict[str, Any]) -> tuple[bool, Optional[str]]:
    """Only closing a quotation (won / lost) goes through the status endpoint."""
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    status = data.get("status")
    if status not in (QuotationStatus.WON.value, QuotationStatus.LOST.value):
        return False, "status must be 'won' or 'lost'"

    return True, None


def validate_catalog_product(data: Dict[str, Any]) -> tuple[bool, Optional[str]]:
    """
    Validate a catalog product payload.

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    for field in ("brand", "machine_type", "material"):
        if _is_blank(data.get(field)):
            return False, f"{field} is required"

    for field in ("length", "width", "thickness", "weight", "unit_cost"):
        if field in data and data[field] is not None and not _is_number(data[field]):
            return False, f"{field} must be a number"

    if "unit_cost" in data and _is_number(data["unit_cost"]) and float(data["unit_cost"]) < 0:
        return False, "unit_cost must be >= 0"

    if "min_lot" in data and data["min_lot"] is not None and not _is_positive_whole(data["min_lot"]):
        return False, "min_lot must be a whole number >= 1"

    selected = data.get("selected_services")
    if selected is not None and not isinstance(selected, list):
        return False, "selected_services must be a list"

    return True, None


def validate_sale_record(data: Dict[str, Any]) -> tuple[bool, Optional[str]]:
    """Validate a sale record payload."""
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    if _is_blank(data.get("client_name")):
        return False, "client_name is required"

    if not _is_positive_whole(data.get("quantity")):
        return False, "quantity must be a whole number >= 1"

    for field in ("unit_price", "total_price"):
        if field in data and not _is_number(data[field]):
            return False, f"{field} must be a number"

    if "status" in data and not validate_quotation_status(data["status"]):
        return False, f"Invalid status: {data['status']}"

    return True, None


def validate_config_entry(collection: str, data: Dict[str, Any]) -> tuple[bool, Optional[str]]:
    """
    Validate an entry of a configuration collection.

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    if collection == "thicknesses":
        if not _is_number(data.get("value")) or float(data["value"]) <= 0:
            return False, "value must be a number > 0"
        return True, None

    if _is_blank(data.get("name")):
        return False, "name is required"

    if collection == "materials":
        if not _is_number(data.get("price_per_kg")) or float(data["price_per_kg"]) < 0:
            return False, "price_per_kg must be a number >= 0"
        if data.get("density") is not None and not _is_number(data["density"]):
            return False, "density must be a number"

    if collection == "services":
        if not _is_number(data.get("unit_price")) or float(data["unit_price"]) < 0:
            return False, "unit_price must be a number >= 0"
        try:
            ServiceUnit(data.get("unit"))
        except ValueError:
            return False, f"Invalid unit: {data.get('unit')}"
        if "provider" in data:
            try:
                ServiceProvider(data["provider"])
            except ValueError:
                return False, f"Invalid provider: {data['provider']}"

    return True, None
