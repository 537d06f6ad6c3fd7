"""
Tests for relevance selection of memories.
"""

import pytest

from bizmem.services.relevance import RelevanceSelector, substring_score
from conftest import make_memory


@pytest.fixture
def selector():
    return RelevanceSelector(limit=5)


class TestRelevanceSelector:

    def test_case_insensitive_substring_match(self, selector):
        match = make_memory('Acme missed the DELIVERY deadline')
        other = make_memory('Invoice paid on time')

        selected = selector.select('delivery', [match, other])

        assert [item.memory for item in selected] == [match]
        assert selected[0].relevance_score == 1.0

    def test_query_case_ignored(self, selector):
        memory = make_memory('late delivery')
        assert len(selector.select('LATE', [memory])) == 1

    def test_capped_at_limit_in_store_order(self, selector):
        memories = [make_memory(f'payment #{i} received') for i in range(7)]

        selected = selector.select('payment', memories)

        assert [item.memory for item in selected] == memories[:5]

    def test_fewer_matches_than_limit(self, selector):
        memories = [make_memory('payment late'), make_memory('contract renewed'), make_memory('second payment')]

        selected = selector.select('payment', memories)

        assert [item.memory.content for item in selected] == ['payment late', 'second payment']

    def test_no_matches(self, selector):
        memories = [make_memory('payment late'), make_memory('contract renewed')]
        assert selector.select('xyz-unmatched', memories) == []

    def test_empty_query_matches_everything(self, selector):
        memories = [make_memory(f'note {i}') for i in range(3)]
        assert [item.memory for item in selector.select('', memories)] == memories

    def test_none_query_treated_as_empty(self, selector):
        memories = [make_memory(f'note {i}') for i in range(7)]
        assert len(selector.select(None, memories)) == 5

    def test_no_memories(self, selector):
        assert selector.select('anything', []) == []

    def test_limit_is_configurable(self):
        memories = [make_memory('payment') for _ in range(4)]
        assert len(RelevanceSelector(limit=2).select('payment', memories)) == 2

    def test_custom_scorer(self):
        memories = [make_memory('urgent payment'), make_memory('payment'), make_memory('contract')]

        def scorer(query, memory):
            return memory.content.count(query) + (0.5 if 'urgent' in memory.content else 0.0)

        selected = RelevanceSelector(limit=5, scorer=scorer).select('payment', memories)

        assert [(item.memory.content, item.relevance_score) for item in selected] == [('urgent payment', 1.5),
                                                                                       ('payment', 1.0)]


class TestSubstringScore:

    def test_binary(self):
        memory = make_memory('Shipment delayed')
        assert substring_score('ship', memory) == 1.0
        assert substring_score('invoice', memory) == 0.0
