"""Shared fixtures for BizMem tests."""

from datetime import datetime, timezone

import pytest

from bizmem.models.core import Memory, build_memory
from bizmem.services.query_pipeline import QueryPipeline
from bizmem.services.reasoning import ReasoningAdapter
from bizmem.services.relevance import RelevanceSelector
from bizmem.utils.bedrock_llm import BedrockLLMError
from bizmem.utils.memory_store import InMemoryMemoryStore, MemoryStore, StoreError

APPROVE_REPLY = '```json\n{"decision":"Approve","reason":"No issues found"}\n```'


class FakeLLM:
    """Stands in for BedrockLLM; records prompts and replays a reply or raises."""

    def __init__(self, reply=APPROVE_REPLY, error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply

    def health_check(self):
        return self.error is None


class BrokenStore(MemoryStore):
    """Store whose every operation fails."""

    def _save(self, memory):
        raise StoreError('connection refused')

    def list_all(self):
        raise StoreError('connection refused')

    def health_check(self):
        return False


def make_memory(content, entity='Acme', **fields) -> Memory:
    fields.setdefault('timestamp', datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc))
    return build_memory({'entity': entity, 'content': content, **fields})


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def failing_llm():
    return FakeLLM(error=BedrockLLMError('connection reset'))


@pytest.fixture
def store():
    return InMemoryMemoryStore()


@pytest.fixture
def pipeline_factory():

    def factory(store, llm):
        return QueryPipeline(store, selector=RelevanceSelector(limit=5), adapter=ReasoningAdapter(llm=llm))

    return factory
