import os
import sys
import threading
import unittest

sys.path.append(os.path.join(os.path.dirname(__file__), "../scripts"))

from geometry import Rect, Size
from graph_model import GraphNode, Group, ReferenceGraph
from layout import (
    COLLECTING,
    DONE,
    OBJECTIVE_AREA,
    OBJECTIVE_ASPECT,
    BatchBuilder,
    GeometryCoordinator,
    LayoutOptions,
    LayoutSession,
    flow_rows,
    force_layout,
    pack_grid,
    pack_groups,
    pack_nodes,
    simulate,
    uniform_grid,
)
from layout.grid import EMPTY_PACKING


def sized_node(node_id: str, width: float, height: float, group: str = None) -> GraphNode:
    node = GraphNode(id=node_id, group=group)
    node.set_size(Size(width, height))
    return node


def grouped_graph() -> ReferenceGraph:
    graph = ReferenceGraph()
    for node_id, group in (("a1", "Alpha"), ("a2", "Alpha"), ("b1", "Beta"), ("b2", "Beta"), ("b3", "Beta")):
        graph.add_node(GraphNode(id=node_id, group=group))
    graph.add_edge("a1", "b1")
    graph.add_edge("b2", "a2")
    return graph


class TestGridPacking(unittest.TestCase):
    def test_four_equal_items(self):
        sizes = [Size(100, 100)] * 4
        for objective in (OBJECTIVE_AREA, OBJECTIVE_ASPECT):
            packing = pack_grid(sizes, 20, objective)
            self.assertEqual((packing.rows, packing.columns), (2, 2))
            self.assertEqual((packing.width, packing.height), (260, 260))
            self.assertEqual(
                packing.positions, ((20, 20), (140, 20), (20, 140), (140, 140))
            )

    def test_positions_follow_input_order(self):
        sizes = [Size(10, 10), Size(50, 50), Size(30, 30)]
        packing = pack_grid(sizes, 5)
        # the largest item is placed first
        self.assertEqual(packing.positions[1], (5, 5))

    def test_packing_is_deterministic(self):
        sizes = [Size(40 + idx * 7 % 30, 20 + idx * 13 % 50) for idx in range(17)]
        self.assertEqual(pack_grid(sizes, 15), pack_grid(list(sizes), 15))

    def test_empty_and_invalid_input(self):
        self.assertEqual(pack_grid([], 15), EMPTY_PACKING)
        with self.assertRaises(ValueError):
            pack_grid([Size(1, 1)], -1)
        with self.assertRaises(ValueError):
            pack_grid([Size(1, 1)], 1, "smallest")

    def test_group_containment(self):
        padding = 15
        alpha = Group(name="Alpha")
        for idx, (width, height) in enumerate(((120, 40), (80, 90), (200, 60))):
            alpha.add_node(sized_node(f"a{idx}", width, height))
        beta = Group(name="Beta")
        beta.add_node(sized_node("b0", 300, 150))
        empty = Group(name="Empty")
        state = pack_groups([alpha, beta, empty], padding)

        self.assertEqual(len(state.groups), 3)
        for group_layout in state.groups:
            inner = group_layout.rect.inflate(-padding)
            for node_layout in group_layout.nodes:
                self.assertTrue(inner.contains(node_layout.rect))
            if group_layout.nodes:
                sizes = [item.rect.size for item in group_layout.nodes]
                packing = pack_grid(sizes, padding, OBJECTIVE_ASPECT)
                col_widths = {}
                row_heights = {}
                for (x, y), size in zip(packing.positions, sizes):
                    col_widths[x] = max(col_widths.get(x, 0), size.width)
                    row_heights[y] = max(row_heights.get(y, 0), size.height)
                self.assertEqual((len(row_heights), len(col_widths)), (packing.rows, packing.columns))
                self.assertGreaterEqual(
                    group_layout.rect.width,
                    sum(col_widths.values()) + padding * (packing.columns + 1),
                )
                self.assertGreaterEqual(
                    group_layout.rect.height,
                    sum(row_heights.values()) + padding * (packing.rows + 1),
                )
        alpha_layout = [item for item in state.groups if item.group is alpha][0]
        # 200x60 and 80x90 share the first row, 120x40 sits below
        self.assertEqual(alpha_layout.rect.size, Size(325, 175))
        rects = [item.rect for item in state.groups if item.rect.width > 0]
        for idx, rect in enumerate(rects):
            for other in rects[idx + 1 :]:
                self.assertFalse(rect.overlaps(other))
        empty_layout = [item for item in state.groups if item.group is empty][0]
        self.assertEqual((empty_layout.rect.width, empty_layout.rect.height), (0, 0))

    def test_apply_pushes_rects(self):
        alpha = Group(name="Alpha")
        node = sized_node("n", 50, 50)
        alpha.add_node(node)
        state = pack_groups([alpha], 10)
        state.apply()
        self.assertEqual(alpha.rect, Rect(10, 10, 70, 70))
        self.assertEqual(node.rect, Rect(20, 20, 50, 50))

    def test_pack_nodes_without_groups(self):
        nodes = [sized_node(f"n{idx}", 100, 100) for idx in range(4)]
        state = pack_nodes(nodes, 20)
        self.assertEqual((state.width, state.height), (260, 260))
        self.assertEqual(len(state.node_layouts()), 4)
        self.assertTrue(pack_groups([], 20).is_empty())


class TestSimpleLayouts(unittest.TestCase):
    def test_uniform_grid(self):
        nodes = [sized_node(f"n{idx}", 100, 50) for idx in range(3)]
        state = uniform_grid(nodes)
        self.assertEqual(state.meta["columns"], 2)
        with self.assertRaises(TypeError):
            state.meta["columns"] = 3
        self.assertEqual(state.to_dict()["meta"]["columns"], 2)
        self.assertEqual(
            [(item.rect.x, item.rect.y) for item in state.nodes],
            [(100, 100), (250, 100), (100, 350)],
        )
        self.assertTrue(uniform_grid([]).is_empty())

    def test_flow_rows_wrap(self):
        nodes = [sized_node(f"n{idx}", 300, 80) for idx in range(3)]
        layouts, size = flow_rows(nodes, padding=20, max_row_width=800, header=50)
        self.assertEqual(
            [(item.rect.x, item.rect.y) for item in layouts], [(20, 50), (340, 50), (20, 170)]
        )
        self.assertEqual(layouts[0].rect.height, 100)
        self.assertEqual(size, Size(660, 290))


class TestForceLayout(unittest.TestCase):
    def test_damped_simulation_settles(self):
        nodes = ["a", "b", "c", "d", "e"]
        edges = [("a", "b"), ("b", "c"), ("c", "d"), ("d", "e"), ("e", "a")]
        result = simulate(nodes, edges, steps=1000, damping=0.95, seed=7)
        self.assertEqual(len(result.speeds), 1000)
        self.assertLess(result.speed_at(1000), result.speed_at(10))

    def test_seed_makes_runs_repeatable(self):
        nodes = ["a", "b", "c"]
        edges = [("a", "b"), ("b", "c")]
        first = simulate(nodes, edges, steps=50, seed=3)
        second = simulate(nodes, edges, steps=50, seed=3)
        self.assertEqual(first.positions, second.positions)

    def test_invalid_damping(self):
        for damping in (0.0, 1.0, 1.5):
            with self.assertRaises(ValueError):
                simulate(["a"], [], damping=damping)

    def test_force_layout_centers_rects(self):
        nodes = [sized_node("a", 100, 40), sized_node("b", 60, 60)]
        state = force_layout(nodes, [("a", "b")], steps=100, seed=1)
        self.assertEqual(state.mode, "force")
        self.assertEqual(len(state.nodes), 2)
        self.assertEqual(state.nodes[0].rect.size, Size(100, 40))
        centers = simulate(["a", "b"], [("a", "b")], steps=100, seed=1).positions
        for layout in state.nodes:
            for got, want in zip(layout.rect.center, centers[layout.node.id]):
                self.assertAlmostEqual(got, want)
        self.assertGreater(state.width, 0)
        self.assertTrue(force_layout([], []).is_empty())

    def test_single_node_and_self_edges(self):
        result = simulate(["a"], [("a", "a")], steps=20, seed=0)
        self.assertEqual(result.speed_at(20), 0.0)


class TestGeometryCoordinator(unittest.TestCase):
    def test_fires_once_after_every_valid_report(self):
        calls = []
        coordinator = GeometryCoordinator(["a", "b"], on_ready=calls.append)
        self.assertFalse(coordinator.report_size("a", 10, 20))
        self.assertFalse(coordinator.report_size("a", 99, 99))
        self.assertFalse(coordinator.report_size("b", 0, 20))
        self.assertEqual(coordinator.state, COLLECTING)
        self.assertTrue(coordinator.report_size("b", 30, 40))
        self.assertEqual(coordinator.state, DONE)
        self.assertTrue(coordinator.layout_performed)
        self.assertEqual(coordinator.registered, frozenset({"a", "b"}))
        self.assertEqual(calls, [{"a": Size(10, 20), "b": Size(30, 40)}])
        self.assertFalse(coordinator.report_size("b", 50, 50))
        self.assertFalse(coordinator.request_layout())
        self.assertEqual(len(calls), 1)

    def test_unknown_node_is_ignored(self):
        coordinator = GeometryCoordinator(["a"])
        self.assertFalse(coordinator.report_size("ghost", 10, 10))
        self.assertEqual(coordinator.warnings, ["Size report for unknown node ghost"])
        self.assertEqual(coordinator.pending(), ["a"])

    def test_callback_registered_late(self):
        calls = []
        coordinator = GeometryCoordinator(["a"])
        coordinator.report_size("a", 5, 5)
        self.assertFalse(coordinator.request_layout())
        self.assertTrue(coordinator.on_ready(calls.append))
        self.assertEqual(len(calls), 1)

    def test_zero_nodes_fire_immediately(self):
        calls = []
        coordinator = GeometryCoordinator([], on_ready=calls.append)
        self.assertEqual(calls, [{}])
        self.assertEqual(coordinator.state, DONE)

    def test_concurrent_reports_fire_once(self):
        calls = []
        ids = [f"n{idx}" for idx in range(200)]
        coordinator = GeometryCoordinator(ids, on_ready=calls.append)

        def report(chunk):
            for node_id in chunk:
                coordinator.report_size(node_id, 10, 10)
                coordinator.report_size(node_id, 20, 20)

        threads = [threading.Thread(target=report, args=(ids[idx::8],)) for idx in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        self.assertEqual(len(calls), 1)
        self.assertEqual(len(calls[0]), 200)


class TestLayoutSession(unittest.TestCase):
    def report_all(self, session, width=80, height=40):
        for node in session.nodes:
            session.report_size(node.id, width, height)

    def test_grid_session_lays_out_once(self):
        graph = grouped_graph()
        session = LayoutSession(graph, LayoutOptions(padding=10))
        self.assertTrue(graph.frozen)
        self.assertFalse(session.done)
        self.report_all(session)
        self.assertTrue(session.done)
        self.assertEqual(session.passes, 1)
        for node in graph.nodes.values():
            self.assertEqual(node.rect.size, Size(80, 40))
            self.assertTrue(graph.groups[node.group].rect.contains(node.rect))
        self.report_all(session, 10, 10)
        self.assertEqual(session.passes, 1)
        with self.assertRaises(RuntimeError):
            graph.add_node(GraphNode(id="late"))

    def test_connected_only_hides_loose_nodes(self):
        graph = grouped_graph()
        session = LayoutSession(graph, LayoutOptions(connected_only=True))
        self.assertEqual(sorted(node.id for node in session.nodes), ["a1", "a2", "b1", "b2"])
        self.assertFalse(graph.nodes["b3"].visible)
        self.report_all(session)
        self.assertIsNone(graph.nodes["b3"].rect)

        fresh = session.refresh(LayoutOptions())
        self.assertTrue(graph.nodes["b3"].visible)
        self.assertFalse(fresh.done)
        self.assertIsNone(graph.nodes["a1"].rect)

    def test_force_session_is_repeatable(self):
        rects = []
        for _ in range(2):
            graph = grouped_graph()
            session = LayoutSession(graph, LayoutOptions(mode="force", steps=200, seed=11))
            self.report_all(session)
            rects.append([node.rect for node in graph.nodes.values()])
        self.assertEqual(rects[0], rects[1])

    def test_empty_graph_is_laid_out_immediately(self):
        session = LayoutSession(ReferenceGraph())
        self.assertTrue(session.done)
        self.assertTrue(session.state.is_empty())

    def test_invalid_options(self):
        with self.assertRaises(ValueError):
            LayoutSession(ReferenceGraph(), LayoutOptions(mode="spiral"))
        with self.assertRaises(ValueError):
            LayoutOptions(padding=-5).validate()
        with self.assertRaises(ValueError):
            LayoutOptions(batch_size=0).validate()


class TestBatchBuilder(unittest.TestCase):
    def test_batches_stack_vertically(self):
        builder = BatchBuilder(max_nodes=5, batch_size=2)
        states = list(builder.run())
        self.assertEqual([len(state.nodes) for state in states], [2, 2, 1])
        self.assertEqual(len(builder.graph), 5)
        self.assertEqual(states[1].nodes[0].rect.y, states[0].height + 50)
        summary = builder.summary()
        self.assertEqual(summary["total_nodes"], 5)
        self.assertEqual(summary["batches"], 3)
        self.assertEqual([item["nodes"] for item in summary["metrics"]], [2, 2, 1])

    def test_invalid_batch_size(self):
        with self.assertRaises(ValueError):
            BatchBuilder(batch_size=0)


if __name__ == "__main__":
    unittest.main()
