"""Tests for multi-query grouping."""

from lens.retrieval.grouping import DIRECT_MATCH_QUERY, group_by_query, is_aggregated


def _contents(group):
    return [d.content for d in group.documents]


def _nest(leaf, levels):
    node = leaf
    for i in range(levels):
        node = {f"level{i}": node}
    return node


class TestQueryRecords:
    """Top-level list of {query, output|results|data} records."""

    def test_one_group_per_record(self):
        payload = [
            {"query": "pricing", "output": [{"content": "p1"}, {"content": "p2"}]},
            {"generatedQuery": "roadmap", "results": [{"content": "r1"}]},
        ]
        groups = group_by_query(payload)
        assert [g.query for g in groups] == ["pricing", "roadmap"]
        assert _contents(groups[0]) == ["p1", "p2"]

    def test_repeated_query_keeps_first(self):
        payload = [
            {"query": "A", "output": [{"content": "a1"}]},
            {"query": "B", "output": [{"content": "b1"}]},
            {"query": "A", "data": [{"content": "a2"}]},
        ]
        groups = group_by_query(payload)
        assert [g.query for g in groups] == ["A", "B"]
        assert _contents(groups[0]) == ["a1"]

    def test_empty_records_skipped(self):
        payload = [
            {"query": "nothing", "output": []},
            {"query": "something", "output": [{"content": "x"}]},
        ]
        assert [g.query for g in group_by_query(payload)] == ["something"]

    def test_query_borrowed_from_first_document(self):
        payload = [{"output": [{"content": "x", "metadata": {"query": "from doc"}}]}]
        assert [g.query for g in group_by_query(payload)] == ["from doc"]

    def test_enveloped_records(self):
        payload = [{"json": {"search_query": "q", "results": {"documents": [{"text": "t"}]}}}]
        groups = group_by_query(payload)
        assert groups[0].query == "q"
        assert _contents(groups[0]) == ["t"]


class TestNestedQueries:
    """{queries: [...]} payloads."""

    def test_recurses_into_queries(self):
        payload = {"queries": [{"query": "one", "output": [{"content": "1"}]}]}
        groups = group_by_query(payload)
        assert [g.query for g in groups] == ["one"]


class TestFallback:
    """Bucket by each document's own tag."""

    def test_tagged_documents(self):
        payload = {
            "results": [
                {"content": "a", "query": "Q1"},
                {"content": "b"},
                {"content": "c", "metadata": {"query": "Q1"}},
            ]
        }
        groups = group_by_query(payload)
        assert [g.query for g in groups] == ["Q1", DIRECT_MATCH_QUERY]
        assert _contents(groups[0]) == ["a", "c"]
        assert _contents(groups[1]) == ["b"]

    def test_flat_tagged_list(self):
        payload = [{"content": "a", "query": "Q"}, {"content": "b", "generated_query": "R"}]
        assert [g.query for g in group_by_query(payload)] == ["Q", "R"]

    def test_no_tags_single_direct_match_group(self):
        groups = group_by_query({"results": [{"content": "a"}, {"content": "b"}]})
        assert len(groups) == 1
        assert groups[0].query == DIRECT_MATCH_QUERY
        assert _contents(groups[0]) == ["a", "b"]
        assert is_aggregated(groups)

    def test_nothing_found(self):
        assert group_by_query({}) == []
        assert group_by_query(None) == []


class TestMaxDepth:
    """Depth bound on every document search."""

    def test_fallback_honours_max_depth(self):
        payload = _nest({"content": "deep", "query": "Q"}, 6)
        assert group_by_query(payload) == []
        groups = group_by_query(payload, max_depth=6)
        assert [g.query for g in groups] == ["Q"]
        assert _contents(groups[0]) == ["deep"]

    def test_record_results_honour_max_depth(self):
        payload = [{"query": "A", "output": _nest({"content": "a"}, 5)}]
        assert group_by_query(payload) == []
        assert [g.query for g in group_by_query(payload, max_depth=5)] == ["A"]

    def test_nested_queries_pass_max_depth(self):
        payload = {"queries": [{"query": "A", "output": _nest({"content": "a"}, 5)}]}
        assert [g.query for g in group_by_query(payload, max_depth=5)] == ["A"]


class TestIsAggregated:
    """Sentinel detection."""

    def test_real_groups_not_aggregated(self):
        groups = group_by_query([{"query": "A", "output": [{"content": "a"}]}])
        assert not is_aggregated(groups)

    def test_empty_not_aggregated(self):
        assert not is_aggregated([])
