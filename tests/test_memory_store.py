"""
Tests for the memory stores and their lifecycle.
"""

from unittest.mock import MagicMock

import pytest
from opensearchpy.exceptions import ConnectionError as OpenSearchConnectionError

from bizmem.models.core import ValidationError
from bizmem.utils.config import OpenSearchConfig, load_config
from bizmem.utils.memory_store import (InMemoryMemoryStore, OpenSearchMemoryStore, StoreError, create_memory_store)
from bizmem.utils.opensearch_client import OpenSearchClient


@pytest.fixture
def opensearch_config():
    return OpenSearchConfig(endpoint='https://search.example.com',
                            port=443,
                            region='us-east-1',
                            index_name='test_memories',
                            auth='none',
                            use_ssl=True)


@pytest.fixture
def raw_client():
    client = MagicMock()
    client.indices.exists.return_value = False
    client.indices.create.return_value = {'acknowledged': True}
    client.index.return_value = {'result': 'created'}
    return client


@pytest.fixture
def opensearch_store(opensearch_config, raw_client):
    return OpenSearchMemoryStore(OpenSearchClient(opensearch_config, client=raw_client))


class TestInMemoryMemoryStore:

    def test_create_then_list_round_trip(self, store):
        created = store.create({
            'entity': 'Acme',
            'entityType': 'supplier',
            'memoryType': 'contract',
            'content': 'Signed two-year contract',
            'importance': 0.8,
            'tags': ['contract', 'renewal'],
        })

        listed = store.list_all()

        assert listed == [created]
        assert listed[0].to_dict()['tags'] == ['contract', 'renewal']
        assert listed[0].importance == 0.8

    def test_insertion_order(self, store):
        first = store.create({'entity': 'A', 'content': 'one'})
        second = store.create({'entity': 'B', 'content': 'two'})
        assert store.list_all() == [first, second]

    def test_invalid_candidate_not_stored(self, store):
        with pytest.raises(ValidationError):
            store.create({'entity': 'Acme', 'content': 'x', 'importance': 2})
        assert store.list_all() == []

    def test_list_returns_copy(self, store):
        store.create({'entity': 'A', 'content': 'one'})
        store.list_all().clear()
        assert len(store.list_all()) == 1

    def test_context_manager(self):
        with InMemoryMemoryStore() as store:
            assert store.health_check()


class TestOpenSearchMemoryStore:

    def test_open_creates_index(self, opensearch_store, raw_client):
        opensearch_store.open()

        raw_client.indices.create.assert_called_once()
        assert raw_client.indices.create.call_args.kwargs['index'] == 'test_memories'

    def test_open_skips_existing_index(self, opensearch_store, raw_client):
        raw_client.indices.exists.return_value = True

        opensearch_store.open()

        raw_client.indices.create.assert_not_called()

    def test_open_failure_is_store_error(self, opensearch_store, raw_client):
        raw_client.indices.exists.side_effect = OpenSearchConnectionError('N/A', 'refused', None)

        with pytest.raises(StoreError):
            opensearch_store.open()

    def test_unacknowledged_index_creation_is_store_error(self, opensearch_store, raw_client):
        raw_client.indices.create.return_value = {'acknowledged': False}

        with pytest.raises(StoreError):
            opensearch_store.open()

    def test_create_indexes_document(self, opensearch_store, raw_client):
        memory = opensearch_store.create({'entity': 'Acme', 'content': 'late delivery'})

        kwargs = raw_client.index.call_args.kwargs
        assert kwargs['id'] == memory.id
        assert kwargs['refresh'] == 'wait_for'
        assert kwargs['body']['content'] == 'late delivery'
        assert isinstance(kwargs['body']['indexed_at'], int)

    def test_create_failure_is_store_error(self, opensearch_store, raw_client):
        raw_client.index.side_effect = OpenSearchConnectionError('N/A', 'refused', None)

        with pytest.raises(StoreError):
            opensearch_store.create({'entity': 'Acme', 'content': 'late delivery'})

    def test_unacknowledged_write_is_store_error(self, opensearch_store, raw_client):
        raw_client.index.return_value = {'result': 'noop'}

        with pytest.raises(StoreError):
            opensearch_store.create({'entity': 'Acme', 'content': 'late delivery'})

    def test_list_all_rebuilds_memories_in_sort_order(self, opensearch_store, raw_client):
        first = InMemoryMemoryStore().create({'entity': 'Acme', 'content': 'one'})
        second = InMemoryMemoryStore().create({'entity': 'Acme', 'content': 'two', 'memoryType': 'payment'})
        raw_client.search.return_value = {
            'hits': {
                'hits': [
                    {'_source': dict(first.to_dict(), indexed_at=1)},
                    {'_source': dict(second.to_dict(), indexed_at=2)},
                ]
            }
        }

        assert opensearch_store.list_all() == [first, second]
        body = raw_client.search.call_args.kwargs['body']
        assert body['query'] == {'match_all': {}}
        assert body['sort'] == OpenSearchMemoryStore.SORT

    def test_list_all_skips_invalid_documents(self, opensearch_store, raw_client):
        raw_client.search.return_value = {'hits': {'hits': [{'_source': {'id': 'broken', 'entity': 'Acme'}}]}}

        assert opensearch_store.list_all() == []

    def test_list_failure_is_store_error(self, opensearch_store, raw_client):
        raw_client.search.side_effect = OpenSearchConnectionError('N/A', 'refused', None)

        with pytest.raises(StoreError):
            opensearch_store.list_all()

    def test_malformed_search_response_is_store_error(self, opensearch_store, raw_client):
        raw_client.search.return_value = {}

        with pytest.raises(StoreError):
            opensearch_store.list_all()

    def test_list_all_pages_past_first_page(self, opensearch_store, raw_client):
        memories = [InMemoryMemoryStore().create({'entity': 'Acme', 'content': f'note {i}'}) for i in range(3)]
        hits = [{'_source': dict(memory.to_dict(), indexed_at=i), 'sort': [i, memory.id]} for i, memory in enumerate(memories)]
        raw_client.search.side_effect = [{'hits': {'hits': hits[:2]}}, {'hits': {'hits': hits[2:]}}]

        documents = opensearch_store.client.list_documents(sort=OpenSearchMemoryStore.SORT, page_size=2)

        assert [document['id'] for document in documents] == [memory.id for memory in memories]
        first_body, second_body = [call.kwargs['body'] for call in raw_client.search.call_args_list]
        assert 'search_after' not in first_body
        assert second_body['search_after'] == [1, memories[1].id]
        assert second_body['size'] == 2

    def test_close_closes_client(self, opensearch_store, raw_client):
        opensearch_store.close()
        raw_client.close.assert_called_once()


class TestCreateMemoryStore:

    def test_memory_backend(self, monkeypatch):
        monkeypatch.setenv('MEMORY_STORE_BACKEND', 'memory')
        assert isinstance(create_memory_store(load_config()), InMemoryMemoryStore)

    def test_unknown_backend(self, monkeypatch):
        monkeypatch.setenv('MEMORY_STORE_BACKEND', 'mongo')
        with pytest.raises(ValueError):
            create_memory_store(load_config())
