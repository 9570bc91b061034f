import io
import json
import os
import sys
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path

sys.path.append(os.path.join(os.path.dirname(__file__), "../scripts"))

from cli.main import main
from exporter import build_adjacency, export_graph, export_graphml
from graph_model import GraphNode, ReferenceGraph


def write_file(root: Path, rel_path: str, content: str) -> None:
    full_path = root / rel_path
    full_path.parent.mkdir(parents=True, exist_ok=True)
    full_path.write_text(content, encoding="utf-8")


def run_cli(args):
    buffer = io.StringIO()
    with redirect_stdout(buffer):
        code = main(args)
    return code, buffer.getvalue()


class TestExporter(unittest.TestCase):
    def graph(self) -> dict:
        graph = ReferenceGraph()
        graph.add_node(GraphNode(id="A", group="Player", properties=[("hp", "10")]))
        graph.add_node(GraphNode(id="B<T>"))
        graph.add_node(GraphNode(id="C"))
        graph.add_edge("A", "B<T>")
        graph.add_edge("A", "C")
        return graph.to_dict()

    def test_adjacency_lists_every_node(self):
        self.assertEqual(build_adjacency(self.graph()), {"A": ["B<T>", "C"], "B<T>": [], "C": []})

    def test_graphml_escapes_ids(self):
        rendered = export_graphml(self.graph())
        self.assertIn('<node id="B&lt;T&gt;">', rendered)
        self.assertIn('<edge source="A" target="C"/>', rendered)
        self.assertIn('<data key="n_group">Player</data>', rendered)
        self.assertIn('<data key="n_properties">hp: 10</data>', rendered)

    def test_unknown_format(self):
        with self.assertRaises(ValueError):
            export_graph(self.graph(), "dot")


class TestCli(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.repo = Path(self.temp_dir.name) / "game"
        self.out = Path(self.temp_dir.name) / "out"
        write_file(self.repo, "Assets/A.cs", "public class A\n{\n    public B target;\n}\n")
        write_file(self.repo, "Assets/B.cs", "public class B\n{\n    private C next;\n}\n")
        write_file(self.repo, "Assets/C.cs", "public class C { }\n")
        self.base = ["--repo", str(self.repo), "--out", str(self.out), "--quiet", "--workers", "1"]

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_index_then_export(self):
        code, output = run_cli(self.base + ["index"])
        self.assertEqual(code, 0)
        self.assertIn("NODES: 3", output)
        self.assertIn("EDGES: 2", output)
        self.assertTrue((self.out / "graph.json").exists())

        code, output = run_cli(self.base + ["export", "--format", "adjacency"])
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(output), {"A": ["B"], "B": ["C"], "C": []})

    def test_export_requires_index(self):
        code, output = run_cli(self.base + ["export"])
        self.assertEqual(code, 2)
        self.assertEqual(output, "")

    def test_layout_with_auto_index(self):
        code, output = run_cli(self.base + ["layout", "--auto-index", "--padding", "20"])
        self.assertEqual(code, 0)
        layout = json.loads(output)
        self.assertEqual(layout["mode"], "grid")
        self.assertEqual(len(layout["nodes"]), 3)
        saved = json.loads((self.out / "layout.json").read_text(encoding="utf-8"))
        self.assertTrue(all("rect" in node for node in saved["graph"]["nodes"]))

    def test_layout_objects(self):
        objects = Path(self.temp_dir.name) / "objects.json"
        objects.write_text(
            json.dumps(
                {
                    "owners": [
                        {"name": "Player", "components": [{"id": "p1", "type": "Health", "references": ["e1"]}]},
                        {"name": "Enemy", "components": [{"id": "e1", "type": "Brain"}]},
                    ]
                }
            ),
            encoding="utf-8",
        )
        code, output = run_cli(self.base + ["layout", "--objects", str(objects)])
        self.assertEqual(code, 0)
        layout = json.loads(output)
        self.assertEqual(sorted(group["name"] for group in layout["groups"]), ["Enemy", "Player"])

    def test_layout_rejects_bad_damping(self):
        code, _ = run_cli(self.base + ["layout", "--auto-index", "--mode", "force", "--damping", "1.5"])
        self.assertEqual(code, 2)

    def test_batch(self):
        code, output = run_cli(["--quiet", "batch", "--max-nodes", "7", "--batch-size", "3"])
        self.assertEqual(code, 0)
        summary = json.loads(output)
        self.assertEqual(summary["total_nodes"], 7)
        self.assertEqual(summary["batches"], 3)


if __name__ == "__main__":
    unittest.main()
