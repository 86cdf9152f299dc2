"""Unit tests for the netree CLI."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from netree import __version__
from netree.cli import app
from netree.render.svg import elements_with_class, load_canvas

runner = CliRunner()


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Empty working directory so no stray .netree.json is discovered."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def nodes_file(workdir, node_records):
    path = workdir / "nodes.json"
    path.write_text(json.dumps({"nodes": node_records}))
    return path


@pytest.fixture
def messages_file(workdir):
    path = workdir / "messages.json"
    path.write_text(json.dumps([
        {"time": 5, "source": "a", "target": "root", "class": "ack"},
        {"time": 1, "source": "d", "target": "c"},
        {"time": 2, "source": "b", "target": "root"},
    ]))
    return path


def write_json(path: Path, data) -> Path:
    path.write_text(json.dumps(data))
    return path


def output_text(result) -> str:
    """CLI output with rich line wrapping undone."""
    return " ".join(result.output.split())


class TestRenderCommand:
    """Test the render command."""

    def test_render_to_file(self, workdir, nodes_file, messages_file):
        out = workdir / "out" / "tree.svg"
        result = runner.invoke(app, [
            "render", str(nodes_file), "--messages", str(messages_file), "--seed", "7", "--out", str(out),
        ])

        assert result.exit_code == 0, result.output
        assert "Diagram written" in output_text(result)

        canvas = load_canvas(out)
        assert canvas.get("width") == "800"
        assert canvas.get("height") == "300"
        assert len(elements_with_class(canvas, "node")) == 5
        assert len(elements_with_class(canvas, "edge")) == 4
        assert len(list(elements_with_class(canvas, "messaging")[0])) == 3

    def test_seed_makes_output_reproducible(self, workdir, nodes_file, messages_file):
        outputs = []
        for name in ("one.svg", "two.svg"):
            out = workdir / name
            result = runner.invoke(app, [
                "render", str(nodes_file), "-m", str(messages_file), "--seed", "3", "-o", str(out),
            ])
            assert result.exit_code == 0, result.output
            canvas = load_canvas(out)
            outputs.append([el.get("d") for el in elements_with_class(canvas, "messaging")[0]])

        assert outputs[0] == outputs[1]

    def test_expire_before(self, workdir, nodes_file, messages_file):
        out = workdir / "tree.svg"
        result = runner.invoke(app, [
            "render", str(nodes_file), "-m", str(messages_file), "--expire-before", "3", "-o", str(out),
        ])

        assert result.exit_code == 0, result.output
        assert "Expired 2 messages" in output_text(result)
        messaging = elements_with_class(load_canvas(out), "messaging")[0]
        assert [el.get("class") for el in messaging] == ["ack"]

    def test_render_to_stdout(self, nodes_file):
        result = runner.invoke(app, ["render", str(nodes_file)])

        assert result.exit_code == 0, result.output
        assert "<svg" in result.output
        assert 'class="tree"' in result.output

    def test_capacity_links_and_cluster(self, workdir, nodes_file):
        out = workdir / "tree.svg"
        result = runner.invoke(app, [
            "render", str(nodes_file), "--cluster", "--link-style", "capacity", "-o", str(out),
        ])

        assert result.exit_code == 0, result.output
        canvas = load_canvas(out)
        assert all(" Q" in path.get("d") for path in elements_with_class(canvas, "edge"))
        transforms = {g.get("data-id"): g.get("transform") for g in elements_with_class(canvas, "node")}
        assert transforms["b"].startswith("translate(800,")

    def test_extra_edges(self, workdir, nodes_file):
        edges = write_json(workdir / "edges.json", {"edges": [{"source": "d", "target": "b", "class": "backup"}]})
        out = workdir / "tree.svg"
        result = runner.invoke(app, ["render", str(nodes_file), "--edges", str(edges), "-o", str(out)])

        assert result.exit_code == 0, result.output
        assert len(elements_with_class(load_canvas(out), "extra")) == 1

    def test_render_into_existing_svg(self, workdir, nodes_file):
        base = workdir / "base.svg"
        base.write_text(
            '<svg xmlns="http://www.w3.org/2000/svg" width="900" height="400">'
            '<rect class="background" width="900" height="400"/></svg>'
        )
        out = workdir / "tree.svg"
        result = runner.invoke(app, ["render", str(nodes_file), "--into", str(base), "-o", str(out)])

        assert result.exit_code == 0, result.output
        canvas = load_canvas(out)
        assert canvas.get("width") == "900"
        assert len(elements_with_class(canvas, "background")) == 1
        assert len(elements_with_class(canvas, "node")) == 5

    def test_config_file(self, workdir, nodes_file):
        config = write_json(workdir / "custom.json", {"tree": {"baseRadius": 9}})
        out = workdir / "tree.svg"
        result = runner.invoke(app, ["render", str(nodes_file), "-c", str(config), "-o", str(out)])

        assert result.exit_code == 0, result.output
        radii = {g[0].get("r") for g in elements_with_class(load_canvas(out), "node")}
        assert radii == {"9"}


class TestRenderErrors:
    """Test error reporting and exit codes."""

    def test_missing_nodes_file(self, workdir):
        result = runner.invoke(app, ["render", str(workdir / "absent.json")])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_invalid_json(self, workdir):
        path = workdir / "nodes.json"
        path.write_text("{not json")
        result = runner.invoke(app, ["render", str(path)])
        assert result.exit_code == 1
        assert "Invalid JSON" in output_text(result)

    def test_not_a_record_list(self, workdir):
        path = write_json(workdir / "nodes.json", {"items": []})
        result = runner.invoke(app, ["render", str(path)])
        assert result.exit_code == 1
        assert "must contain a list" in output_text(result)

    def test_malformed_tree(self, workdir):
        path = write_json(workdir / "nodes.json", [{"id": "a"}, {"id": "b"}])
        result = runner.invoke(app, ["render", str(path)])
        assert result.exit_code == 1
        assert "multiple roots" in output_text(result)

    def test_unknown_message_endpoint(self, workdir, nodes_file):
        messages = write_json(workdir / "messages.json", [{"time": 1, "source": "a", "target": "zz"}])
        result = runner.invoke(app, ["render", str(nodes_file), "-m", str(messages)])
        assert result.exit_code == 1
        assert "unknown node" in output_text(result)

    @pytest.mark.parametrize("records", [
        [{"time": 1, "source": "a", "target": "b"}, "not a record"],
        [{"time": "soon", "source": "a", "target": "b"}, {"time": 1, "source": "b", "target": "a"}],
        [{"source": "a", "target": "b"}],
    ])
    def test_invalid_message_records(self, workdir, nodes_file, records):
        messages = write_json(workdir / "messages.json", records)
        result = runner.invoke(app, ["render", str(nodes_file), "-m", str(messages)])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "Error:" in output_text(result)
        assert "MessageRecord" in output_text(result)

    def test_numeric_string_times_are_ordered(self, workdir, nodes_file):
        messages = write_json(workdir / "messages.json", [
            {"time": "2", "source": "a", "target": "b", "class": "late"},
            {"time": 1, "source": "b", "target": "a", "class": "early"},
        ])
        out = workdir / "tree.svg"
        result = runner.invoke(app, ["render", str(nodes_file), "-m", str(messages), "-o", str(out)])

        assert result.exit_code == 0, result.output
        messaging = elements_with_class(load_canvas(out), "messaging")[0]
        assert [el.get("class") for el in messaging] == ["early", "late"]

    def test_duplicate_message_ids(self, workdir, nodes_file):
        messages = write_json(workdir / "messages.json", [
            {"time": 1, "id": "m", "source": "a", "target": "b"},
            {"time": 2, "id": "m", "source": "b", "target": "a"},
        ])
        result = runner.invoke(app, ["render", str(nodes_file), "-m", str(messages)])
        assert result.exit_code == 1
        assert "duplicate message id: m" in output_text(result)

    def test_invalid_config(self, workdir, nodes_file):
        config = write_json(workdir / "bad.json", {"tree": {"size": [0, 10]}})
        result = runner.invoke(app, ["render", str(nodes_file), "-c", str(config)])
        assert result.exit_code == 1
        assert "Failed to load config" in output_text(result)

    def test_into_non_svg(self, workdir, nodes_file):
        base = workdir / "base.xml"
        base.write_text("<html/>")
        result = runner.invoke(app, ["render", str(nodes_file), "--into", str(base)])
        assert result.exit_code == 1
        assert "not an SVG document" in output_text(result)


class TestLayoutCommand:
    """Test the layout command."""

    def test_table(self, nodes_file):
        result = runner.invoke(app, ["layout", str(nodes_file)])

        assert result.exit_code == 0, result.output
        assert "Node positions" in result.output
        assert "root" in result.output

    def test_json(self, nodes_file):
        result = runner.invoke(app, ["layout", str(nodes_file), "--json"])

        assert result.exit_code == 0, result.output
        positions = {node["id"]: node for node in json.loads(result.stdout)}
        assert positions["root"]["x"] == pytest.approx(150)
        assert positions["d"]["y"] == pytest.approx(800)
        assert positions["d"]["parent"] == "c"

    def test_cluster_json(self, nodes_file):
        result = runner.invoke(app, ["layout", str(nodes_file), "--cluster", "--json"])

        assert result.exit_code == 0, result.output
        leaves = [node for node in json.loads(result.stdout) if node["height"] == 0]
        assert {node["y"] for node in leaves} == {800}

    def test_malformed_tree(self, workdir):
        path = write_json(workdir / "nodes.json", [{"id": "a", "parent": "ghost"}])
        result = runner.invoke(app, ["layout", str(path)])
        assert result.exit_code == 1
        assert "missing: ghost" in output_text(result)


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output
