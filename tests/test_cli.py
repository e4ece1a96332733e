"""Tests for the inspection CLI."""

import json

import pytest

from lens import cli


@pytest.fixture(autouse=True)
def no_logging_setup(monkeypatch):
    monkeypatch.setattr(cli, "setup_logging", lambda **kwargs: None)


class TestViewCommand:
    """view <payload.json>"""

    def test_prints_view_json(self, tmp_path, capsys):
        path = tmp_path / "payload.json"
        path.write_text(json.dumps({"fusedResults": [{"chunkText": "A", "score": 0.9}]}))

        assert cli.main(["view", str(path), "--strategy", "fusion"]) == 0

        view = json.loads(capsys.readouterr().out)
        assert view["kind"] == "ranked_with_badges"
        assert view["badge"] == "fusion"
        assert view["documents"][0]["content"] == "A"

    def test_default_strategy_is_flat(self, tmp_path, capsys):
        path = tmp_path / "payload.json"
        path.write_text('{"results": [{"content": "x"}]}\n{"results": []}')

        assert cli.main(["view", str(path)]) == 0
        assert json.loads(capsys.readouterr().out)["kind"] == "flat_ranked"

    def test_max_depth(self, tmp_path, capsys):
        path = tmp_path / "payload.json"
        path.write_text(json.dumps({"a": {"b": {"content": "deep"}}}))

        cli.main(["view", str(path), "--max-depth", "1"])
        assert json.loads(capsys.readouterr().out)["documents"] == []

    def test_missing_file(self, tmp_path, capsys):
        assert cli.main(["view", str(tmp_path / "nope.json")]) == 2
        assert "no such file" in capsys.readouterr().err

    def test_invalid_json(self, tmp_path, capsys):
        path = tmp_path / "payload.json"
        path.write_text("<html>oops</html>")
        assert cli.main(["view", str(path)]) == 1
        assert "Invalid JSON" in capsys.readouterr().err


class TestStrategiesCommand:
    """strategies"""

    def test_text_listing(self, capsys):
        assert cli.main(["strategies"]) == 0
        out = capsys.readouterr().out
        assert "multi-query" in out
        assert "[sql]" in out

    def test_json_listing(self, capsys):
        cli.main(["strategies", "--json"])
        data = json.loads(capsys.readouterr().out)
        assert [s["id"] for s in data][0] == "fusion"
        assert len(data) == 7


def test_no_command_prints_help(capsys):
    assert cli.main([]) == 1
    assert "usage" in capsys.readouterr().out
