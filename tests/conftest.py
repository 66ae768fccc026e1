"""
Shared fixtures: an isolated local cache per test and an in-memory stand-in
for the boto3 DynamoDB resource.
"""

import json
from copy import deepcopy

import pytest

from quotation_manager.services import remote_store
from quotation_manager.services.local_cache import LocalCache, set_local_cache


class FakeBatchWriter:
    def __init__(self, table):
        self.table = table

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def put_item(self, Item):
        self.table.put_item(Item=Item)


class FakeTable:
    """Subset of the boto3 Table API used by the remote store."""

    def __init__(self, name, page_size=None):
        self.name = name
        self.items = {}
        self.page_size = page_size

    def scan(self, ExclusiveStartKey=None):
        values = list(self.items.values())
        start = 0
        if ExclusiveStartKey:
            ids = list(self.items.keys())
            start = ids.index(ExclusiveStartKey['id']) + 1
        if self.page_size is None:
            return {'Items': deepcopy(values[start:])}
        page = values[start:start + self.page_size]
        response = {'Items': deepcopy(page)}
        if start + self.page_size < len(values):
            response['LastEvaluatedKey'] = {'id': page[-1]['id']}
        return response

    def get_item(self, Key):
        item = self.items.get(Key['id'])
        return {'Item': deepcopy(item)} if item else {}

    def put_item(self, Item):
        for value in _walk(Item):
            if isinstance(value, float):
                raise TypeError("Float types are not supported. Use Decimal types instead.")
        self.items[Item['id']] = deepcopy(Item)

    def delete_item(self, Key):
        self.items.pop(Key['id'], None)

    def batch_writer(self):
        return FakeBatchWriter(self)


class FailingTable(FakeTable):
    def scan(self, ExclusiveStartKey=None):
        raise ConnectionError("endpoint unreachable")

    def put_item(self, Item):
        raise ConnectionError("endpoint unreachable")

    def delete_item(self, Key):
        raise ConnectionError("endpoint unreachable")


class FakeDynamoDB:
    def __init__(self, table_class=FakeTable):
        self.table_class = table_class
        self.tables = {}

    def Table(self, name):
        if name not in self.tables:
            self.tables[name] = self.table_class(name)
        return self.tables[name]

    def collection(self, name):
        return self.Table(f"{remote_store.TABLE_PREFIX}{name}")


def _walk(value):
    if isinstance(value, dict):
        for item in value.values():
            yield from _walk(item)
    elif isinstance(value, list):
        for item in value:
            yield from _walk(item)
    else:
        yield value


@pytest.fixture(autouse=True)
def cache(tmp_path, monkeypatch):
    """Every test gets its own cache file and starts with the remote store off."""
    monkeypatch.delenv('REMOTE_STORE_ENABLED', raising=False)
    local_cache = LocalCache(str(tmp_path / "cache.json"))
    set_local_cache(local_cache)
    yield local_cache
    set_local_cache(None)
    remote_store.set_dynamodb(None)


@pytest.fixture
def dynamodb(monkeypatch):
    """Enabled remote store backed by in-memory tables."""
    monkeypatch.setenv('REMOTE_STORE_ENABLED', 'true')
    fake = FakeDynamoDB()
    remote_store.set_dynamodb(fake)
    return fake


@pytest.fixture
def broken_dynamodb(monkeypatch):
    """Enabled remote store whose every call fails."""
    monkeypatch.setenv('REMOTE_STORE_ENABLED', 'true')
    fake = FakeDynamoDB(table_class=FailingTable)
    remote_store.set_dynamodb(fake)
    return fake


@pytest.fixture
def materials():
    return [
        {'id': 'm-1', 'name': 'SAE 1045', 'price_per_kg': 2.5, 'density': 7.85},
        {'id': 'm-2', 'name': 'Boro', 'price_per_kg': 4, 'density': 7850},
        {'id': 'm-3', 'name': 'Sin densidad', 'price_per_kg': 3},
    ]


@pytest.fixture
def services():
    return [
        {'id': 's-kg', 'name': 'Temple', 'unit_price': 2, 'unit': 'kg'},
        {'id': 's-fijo', 'name': 'Flete', 'unit_price': 15, 'unit': 'fijo'},
        {'id': 's-m2', 'name': 'Pintura', 'unit_price': 10, 'unit': 'm2'},
        {'id': 's-pza', 'name': 'Afilado', 'unit_price': 1.5, 'unit': 'pza'},
        {'id': 's-free', 'name': 'Inspección', 'unit_price': 0, 'unit': 'pza'},
    ]


@pytest.fixture
def product():
    return {
        'id': 'p-1',
        'competitor_code': 'ABC-1',
        'brand': 'Metalbert',
        'machine_type': 'Cuchilla Picadora',
        'length': 500,
        'width': 100,
        'thickness': 10,
        'weight': 3.9,
        'material': 'SAE 1045',
        'min_lot': 10,
        'unit_cost': 9.75,
        'selected_services': [],
        'sales_history': [],
    }


def make_event(method, path, body=None, query=None):
    """API Gateway HTTP API (v2) event."""
    event = {
        'rawPath': path,
        'requestContext': {'http': {'method': method}},
    }
    if body is not None:
        event['body'] = json.dumps(body)
    if query:
        event['queryStringParameters'] = query
    return event
