"""
Tests for the MCP tool functions.
"""

import pytest

from bizmem import mcp_interface
from bizmem.services.memory_management import MemoryManagementService
from bizmem.services.query_pipeline import QueryPipeline
from bizmem.services.reasoning import ReasoningAdapter
from bizmem.services.relevance import RelevanceSelector
from bizmem.utils.memory_store import InMemoryMemoryStore
from conftest import BrokenStore, FakeLLM


def use_service(store):
    pipeline = QueryPipeline(store, selector=RelevanceSelector(limit=5), adapter=ReasoningAdapter(llm=FakeLLM()))
    mcp_interface.set_service(MemoryManagementService(store=store, pipeline=pipeline))


@pytest.fixture(autouse=True)
def reset_service():
    yield
    mcp_interface.set_service(None)


class TestMCPTools:

    def test_add_list_and_query(self):
        use_service(InMemoryMemoryStore())

        created = mcp_interface.add_memory('Acme', 'Acme escalated a billing dispute', memory_type='escalation', tags=['billing'])
        listed = mcp_interface.list_memories()
        answer = mcp_interface.query_memories('billing', entity='Acme')

        assert created['memoryType'] == 'escalation'
        assert listed == [created]
        assert answer['decision'] == {'decision': 'Approve', 'reason': 'No issues found'}
        assert [item['id'] for item in answer['context']] == [created['id']]

    def test_invalid_memory(self):
        use_service(InMemoryMemoryStore())

        with pytest.raises(Exception, match='Invalid memory'):
            mcp_interface.add_memory('Acme', 'x', entity_type='vendor')

    def test_store_failures(self):
        use_service(BrokenStore())

        with pytest.raises(Exception, match='Failed to get list'):
            mcp_interface.list_memories()
        with pytest.raises(Exception, match='Failed to process query'):
            mcp_interface.query_memories('anything')
