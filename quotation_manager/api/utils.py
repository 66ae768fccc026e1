"""
Request parsing and response building for the quotation manager API.

Events follow the API Gateway HTTP API (v2) payload format.
"""

import os
import json
import base64
import logging
from io import BytesIO
from typing import Dict, Any, Optional
from urllib.parse import parse_qs

from quotation_manager.shared.serialization import convert_decimals_to_native

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv('LOG_LEVEL', 'INFO'))

XLSX_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

RESPONSE_HEADERS = {
    'Content-Type': 'application/json',
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Methods': 'GET, POST, PUT, PATCH, DELETE, OPTIONS',
    'Access-Control-Allow-Headers': 'Content-Type, Authorization',
    'X-Content-Type-Options': 'nosniff',
    'X-Frame-Options': 'DENY',
    'Referrer-Policy': 'strict-origin-when-cross-origin',
}


def get_method(event: Dict[str, Any]) -> str:
    return event.get('requestContext', {}).get('http', {}).get('method', '').upper()


def get_query_params(event: Dict[str, Any]) -> Dict[str, str]:
    """
    Query string of the request as a flat dict.

    Falls back to parsing ``rawQueryString`` when API Gateway did not
    pre-split it. Repeated keys keep every value as a list.
    """
    if event.get('queryStringParameters'):
        return event['queryStringParameters']

    raw = event.get('rawQueryString')
    if not raw:
        return {}
    return {key: values[0] if len(values) == 1 else values for key, values in parse_qs(raw).items()}


def get_path_parameter(event: Dict[str, Any], name: str) -> Optional[str]:
    params = event.get('pathParameters') or {}
    return params.get(name) or params.get(name.lower())


def get_request_body(event: Dict[str, Any]) -> Dict[str, Any]:
    """JSON body of the request, or an empty dict when it is missing or malformed."""
    body = event.get('body') or '{}'

    if isinstance(body, dict):
        return body
    if not isinstance(body, str):
        return {}

    if event.get('isBase64Encoded'):
        body = base64.b64decode(body).decode('utf-8')
    try:
        parsed = json.loads(body)
    except json.JSONDecodeError:
        logger.warning("Ignoring request body that is not valid JSON")
        return {}
    return parsed if isinstance(parsed, dict) else {}


def create_response(
    status_code: int,
    body: Any,
    headers: Optional[Dict[str, str]] = None
) -> Dict[str, Any]:
    """
    Build an API Gateway response.

    Decimals in ``body`` (records read back from DynamoDB or produced by
    the pricing services) are converted to int/float before encoding.
    String bodies are sent as they are.
    """
    response_headers = dict(RESPONSE_HEADERS)
    if headers:
        response_headers.update(headers)

    if not isinstance(body, str):
        body = json.dumps(convert_decimals_to_native(body), default=str)

    return {
        'statusCode': status_code,
        'headers': response_headers,
        'body': body,
    }


def error_response(status_code: int, error: str, message: Optional[str] = None) -> Dict[str, Any]:
    payload = {'error': error}
    if message is not None:
        payload['message'] = message
    return create_response(status_code, payload)


def create_file_response(filename: str, data: BytesIO, export_type: str) -> Dict[str, Any]:
    """Return a generated workbook as base64 inside a JSON body."""
    return create_response(200, {
        'filename': filename,
        'content_type': XLSX_CONTENT_TYPE,
        'data': base64.b64encode(data.getvalue()).decode('utf-8'),
        'export_type': export_type
    })


def handle_cors_preflight(event: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Empty 200 for an OPTIONS request, None for anything else."""
    if get_method(event) != 'OPTIONS':
        return None
    return create_response(200, '')
