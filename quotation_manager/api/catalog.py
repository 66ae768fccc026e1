"""
Catalog product endpoint handlers.
"""

import os
import logging
from typing import Dict, Any

from quotation_manager.api.utils import get_query_params, get_path_parameter, get_request_body, create_response, error_response
from quotation_manager.schemas.catalog_model import create_catalog_product
from quotation_manager.schemas.validation import validate_catalog_product, validate_sale_record
from quotation_manager.services.catalog_service import (
    add_sale_record,
    apply_price_updates,
    calculate_price_updates_for_material,
    delete_catalog_product,
    delete_sale_record,
    get_catalog_product,
    get_catalog_products,
    normalize_selected_services,
    save_catalog_product,
    update_sale_record,
)
from quotation_manager.services.config_service import get_materials, get_services
from quotation_manager.services.cost_service import calculate_product_costs, recalculate_product
from quotation_manager.services.search_service import PRODUCT_SORT_FIELDS, search_products, sort_records

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv('LOG_LEVEL', 'INFO'))


def _is_true(value: Any) -> bool:
    return value is True or str(value).lower() == 'true'


def _costed_product(body: Dict[str, Any], is_edit: bool, product_id: str = None) -> Dict[str, Any]:
    body = {**body, 'selected_services': normalize_selected_services(body.get('selected_services'))}
    product = create_catalog_product(body, product_id=product_id)
    return recalculate_product(
        product,
        get_materials(),
        get_services(),
        is_edit=is_edit,
        manual_weight=_is_true(body.get('manual_weight')),
        manual_price=_is_true(body.get('manual_price')),
    )


def handle_get_products(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle GET /catalog - List catalog products.

    Query parameters:
    - material: Only products using this material
    - search: Case-insensitive text matched against code, brand, machine and material
    - sort: Column to sort by; direction: asc (default) / desc
    """
    try:
        params = get_query_params(event)
        products = get_catalog_products()

        material = params.get('material')
        if material:
            products = [p for p in products if p.get('material') == material]

        products = search_products(products, params.get('search'))
        products = sort_records(
            products,
            params.get('sort'),
            (params.get('direction') or 'asc').lower(),
            allowed_fields=PRODUCT_SORT_FIELDS,
        )

        logger.info(f"[GET-PRODUCTS] Listed {len(products)} products")
        return create_response(200, {'products': products, 'count': len(products)})

    except ValueError as e:
        return error_response(400, 'Validation error', str(e))
    except Exception as e:
        logger.error(f"[GET-PRODUCTS] Error listing products: {str(e)}", exc_info=True)
        return error_response(500, 'Internal server error', 'Failed to list products')


def handle_get_product(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle GET /catalog/{productId} - Product with its cost breakdown.
    """
    try:
        product_id = get_path_parameter(event, 'productId')
        if not product_id:
            return error_response(400, 'Missing productId')

        product = get_catalog_product(product_id)
        if not product:
            return error_response(404, 'Product not found')

        costs = calculate_product_costs(product, get_materials(), get_services())
        return create_response(200, {**product, 'cost_breakdown': costs.to_dict()})

    except Exception as e:
        logger.error(f"[GET-PRODUCT] Error getting product: {str(e)}", exc_info=True)
        return error_response(500, 'Internal server error', 'Failed to get product')


def handle_create_product(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle POST /catalog - Create a product; weight and unit cost are computed
    unless manual_weight / manual_price are set.
    """
    try:
        body = get_request_body(event)

        is_valid, error = validate_catalog_product(body)
        if not is_valid:
            return error_response(400, 'Validation error', error)

        product = save_catalog_product(_costed_product(body, is_edit=False))
        logger.info(f"[CREATE-PRODUCT] Created product ID: {product['id'][:8]} | Unit cost: {product['unit_cost']}")
        return create_response(201, product)

    except ValueError as e:
        return error_response(400, 'Validation error', str(e))
    except Exception as e:
        logger.error(f"[CREATE-PRODUCT] Error creating product: {str(e)}", exc_info=True)
        return error_response(500, 'Internal server error', 'Failed to create product')


def handle_update_product(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle PUT /catalog/{productId} - Update a product.

    Saved service quantities are kept as they are; only weight and unit cost
    are recomputed.
    """
    try:
        product_id = get_path_parameter(event, 'productId')
        if not product_id:
            return error_response(400, 'Missing productId')

        existing = get_catalog_product(product_id)
        if not existing:
            return error_response(404, 'Product not found')

        body = {**existing, **get_request_body(event)}

        is_valid, error = validate_catalog_product(body)
        if not is_valid:
            return error_response(400, 'Validation error', error)

        product = save_catalog_product(_costed_product(body, is_edit=True, product_id=product_id))
        return create_response(200, product)

    except ValueError as e:
        return error_response(400, 'Validation error', str(e))
    except Exception as e:
        logger.error(f"[UPDATE-PRODUCT] Error updating product: {str(e)}", exc_info=True)
        return error_response(500, 'Internal server error', 'Failed to update product')


def handle_delete_product(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle DELETE /catalog/{productId} - Delete a product.
    """
    try:
        product_id = get_path_parameter(event, 'productId')
        if not product_id:
            return error_response(400, 'Missing productId')

        if not delete_catalog_product(product_id):
            return error_response(404, 'Product not found')

        return create_response(200, {'message': 'Product deleted successfully'})

    except Exception as e:
        logger.error(f"[DELETE-PRODUCT] Error deleting product: {str(e)}", exc_info=True)
        return error_response(500, 'Internal server error', 'Failed to delete product')


def handle_cost_preview(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle POST /catalog/cost-preview - Live form recalculation without saving.

    Body: product fields plus is_edit / manual_weight / manual_price flags.
    """
    try:
        body = get_request_body(event)
        product = _costed_product(body, is_edit=_is_true(body.get('is_edit')), product_id=body.get('id'))
        costs = calculate_product_costs(product, get_materials(), get_services())
        return create_response(200, {'product': product, 'cost_breakdown': costs.to_dict()})

    except ValueError as e:
        return error_response(400, 'Validation error', str(e))
    except Exception as e:
        logger.error(f"[COST-PREVIEW] Error computing costs: {str(e)}", exc_info=True)
        return error_response(500, 'Internal server error', 'Failed to compute costs')


def handle_price_updates(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle POST /catalog/price-updates - Preview or apply unit cost changes
    after a material price change.

    Body: {material, price_per_kg, apply: bool}
    """
    try:
        body = get_request_body(event)
        material = body.get('material')
        if not material or body.get('price_per_kg') is None:
            return error_response(400, 'Validation error', 'material and price_per_kg are required')

        updates = calculate_price_updates_for_material(material, body['price_per_kg'])
        if _is_true(body.get('apply')):
            apply_price_updates(updates)

        return create_response(200, {
            'updates': [
                {'product_id': u['product']['id'], 'old_price': u['old_price'], 'new_price': u['new_price']}
                for u in updates
            ],
            'count': len(updates),
            'applied': _is_true(body.get('apply'))
        })

    except Exception as e:
        logger.error(f"[PRICE-UPDATES] Error computing price updates: {str(e)}", exc_info=True)
        return error_response(500, 'Internal server error', 'Failed to compute price updates')


def handle_add_sale(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle POST /catalog/{productId}/sales - Add a sale record.
    """
    try:
        product_id = get_path_parameter(event, 'productId')
        if not product_id:
            return error_response(400, 'Missing productId')

        body = get_request_body(event)
        is_valid, error = validate_sale_record(body)
        if not is_valid:
            return error_response(400, 'Validation error', error)

        product = add_sale_record(product_id, body)
        if not product:
            return error_response(404, 'Product not found')

        return create_response(201, product)

    except Exception as e:
        logger.error(f"[ADD-SALE] Error adding sale: {str(e)}", exc_info=True)
        return error_response(500, 'Internal server error', 'Failed to add sale')


def handle_update_sale(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle PUT /catalog/{productId}/sales/{saleId} - Replace a sale record.
    """
    try:
        product_id = get_path_parameter(event, 'productId')
        sale_id = get_path_parameter(event, 'saleId')
        if not product_id or not sale_id:
            return error_response(400, 'Missing productId or saleId')

        body = get_request_body(event)
        is_valid, error = validate_sale_record(body)
        if not is_valid:
            return error_response(400, 'Validation error', error)

        product = update_sale_record(product_id, sale_id, body)
        if not product:
            return error_response(404, 'Product or sale not found')

        return create_response(200, product)

    except Exception as e:
        logger.error(f"[UPDATE-SALE] Error updating sale: {str(e)}", exc_info=True)
        return error_response(500, 'Internal server error', 'Failed to update sale')


def handle_delete_sale(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle DELETE /catalog/{productId}/sales/{saleId} - Remove a sale record.
    """
    try:
        product_id = get_path_parameter(event, 'productId')
        sale_id = get_path_parameter(event, 'saleId')
        if not product_id or not sale_id:
            return error_response(400, 'Missing productId or saleId')

        product = delete_sale_record(product_id, sale_id)
        if not product:
            return error_response(404, 'Product not found')

        return create_response(200, product)

    except Exception as e:
        logger.error(f"[DELETE-SALE] Error deleting sale: {str(e)}", exc_info=True)
        return error_response(500, 'Internal server error', 'Failed to delete sale')
