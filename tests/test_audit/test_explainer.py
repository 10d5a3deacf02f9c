"""Tests for AccessExplainer."""

from __future__ import annotations

import json

import pytest

from ngac.audit import AccessExplainer, Explain
from ngac.engines import PolicyReviewDecider
from ngac.exceptions import CycleDetectedError, InvalidArgumentError, NodeNotFoundError
from ngac.graph import MemoryGraph
from ngac.operations import ALL_OPERATIONS
from ngac.types import NodeType
from tests.conftest import add_node


def path_strings(explain: Explain, pc: str) -> list[str]:
    return [str(path) for path in explain.policy_classes[pc].paths]


class TestExplain:
    """Test path reconstruction."""

    def test_single_policy_class(self, graph):
        explain = AccessExplainer(graph).explain("u1", "o1")
        assert explain.permissions == {"read", "write"}
        assert list(explain.policy_classes) == ["pc1"]
        assert explain.policy_classes["pc1"].operations == {"read", "write"}
        assert path_strings(explain, "pc1") == ["u1-ua1-oa1-o1 ops=[read, write]"]

    def test_two_policy_classes(self, two_pc_graph):
        explain = AccessExplainer(two_pc_graph).explain("u1", "o1")
        assert explain.permissions == {"read"}
        assert path_strings(explain, "pc1") == ["u1-ua1-oa1-o1 ops=[read, write]"]
        assert path_strings(explain, "pc2") == ["u1-ua1-oa2-o1 ops=[read]"]

    def test_policy_class_without_paths_vetoes(self, graph):
        add_node(graph, "pc2", NodeType.PC)
        add_node(graph, "oa2", NodeType.OA, "pc2")
        graph.assign("o1", "oa2")
        explain = AccessExplainer(graph).explain("u1", "o1")
        assert explain.permissions == set()
        assert explain.policy_classes["pc2"].operations == set()
        assert explain.policy_classes["pc2"].paths == []

    def test_policy_classes_sharing_a_name_stay_separate(self, make_decider):
        g = MemoryGraph()
        g.create_node("pcA", "policy", NodeType.PC)
        g.create_node("pcB", "policy", NodeType.PC)
        add_node(g, "oa1", NodeType.OA, "pcA")
        add_node(g, "oa2", NodeType.OA, "pcB")
        add_node(g, "o1", NodeType.O, "oa1", "oa2")
        add_node(g, "ua1", NodeType.UA, "pcA")
        add_node(g, "u1", NodeType.U, "ua1")
        g.associate("ua1", "oa1", ["read"])

        explain = AccessExplainer(g).explain("u1", "o1")
        assert set(explain.policy_classes) == {"pcA", "pcB"}
        assert explain.policy_classes["pcA"].name == "policy"
        assert explain.policy_classes["pcB"].name == "policy"
        assert explain.policy_classes["pcB"].operations == set()
        assert explain.permissions == set()
        assert make_decider(g).list("u1", None, "o1") == explain.permissions

    def test_target_is_association_target(self, graph):
        explain = AccessExplainer(graph).explain("u1", "oa1")
        assert path_strings(explain, "pc1") == ["u1-ua1-oa1 ops=[read, write]"]

    def test_grant_on_ancestor_attribute(self, graph):
        add_node(graph, "oa0", NodeType.OA, "pc1")
        graph.assign("oa1", "oa0")
        graph.associate("ua2", "oa0", ["read"])
        explain = AccessExplainer(graph).explain("u2", "o1")
        assert path_strings(explain, "pc1") == ["u2-ua2-oa0-oa1-o1 ops=[read]"]

    def test_paths_are_deduplicated(self, graph):
        # oa1 is reachable from pc1 directly and through oa0
        add_node(graph, "oa0", NodeType.OA, "pc1")
        graph.assign("oa1", "oa0")
        explain = AccessExplainer(graph).explain("u1", "o1")
        assert path_strings(explain, "pc1") == ["u1-ua1-oa1-o1 ops=[read, write]"]

    def test_ancestor_user_attribute_path(self, graph):
        add_node(graph, "ua0", NodeType.UA, "pc1")
        graph.assign("ua1", "ua0")
        graph.associate("ua0", "oa1", ["delete"])
        explain = AccessExplainer(graph).explain("u1", "o1")
        assert explain.permissions == {"read", "write", "delete"}
        assert sorted(path_strings(explain, "pc1")) == [
            "u1-ua1-oa1-o1 ops=[read, write]",
            "u1-ua1-ua0-oa1-o1 ops=[delete]",
        ]

    def test_admin_ops_stop_at_objects(self, graph):
        graph.associate("ua1", "oa1", ["read", "assign to"])
        explainer = AccessExplainer(graph)
        assert explainer.explain("u1", "o1").permissions == {"read"}
        assert explainer.explain("u1", "oa1").permissions == {"read", "assign to"}

    def test_no_grants(self, graph):
        explain = AccessExplainer(graph).explain("u2", "o1")
        assert explain.permissions == set()
        assert explain.policy_classes["pc1"].paths == []

    def test_graph_required(self):
        with pytest.raises(InvalidArgumentError):
            AccessExplainer(None)

    def test_unknown_nodes(self, graph):
        explainer = AccessExplainer(graph)
        with pytest.raises(NodeNotFoundError):
            explainer.explain("missing", "o1")
        with pytest.raises(NodeNotFoundError):
            explainer.explain("u1", "missing")

    def test_cycle(self, fake_graph):
        fake_graph.add("oa1", NodeType.OA).add("oa2", NodeType.OA).add("o1", NodeType.O)
        fake_graph.add("u1", NodeType.U)
        fake_graph.assign("o1", "oa1").assign("oa1", "oa2").assign("oa2", "oa1")
        with pytest.raises(CycleDetectedError):
            AccessExplainer(fake_graph).explain("u1", "o1")


class TestSerialization:
    """Test rendering of explanations."""

    def test_to_dict(self, graph):
        explain = AccessExplainer(graph).explain("u1", "o1")
        assert explain.to_dict() == {
            "permissions": ["read", "write"],
            "policy_classes": {
                "pc1": {
                    "name": "pc1",
                    "operations": ["read", "write"],
                    "paths": [
                        {"nodes": ["u1", "ua1", "oa1", "o1"], "operations": ["read", "write"]},
                    ],
                },
            },
        }

    def test_to_json(self, graph):
        explain = AccessExplainer(graph).explain("u1", "o1")
        assert json.loads(explain.to_json()) == explain.to_dict()

    def test_str(self, two_pc_graph):
        text = str(AccessExplainer(two_pc_graph).explain("u1", "o1"))
        assert text.splitlines() == [
            "operations: [read]",
            "policy classes:",
            "  pc1",
            "    operations: [read, write]",
            "    paths:",
            "      u1-ua1-oa1-o1 ops=[read, write]",
            "  pc2",
            "    operations: [read]",
            "    paths:",
            "      u1-ua1-oa2-o1 ops=[read]",
        ]


class TestAgreementWithDecider:
    """Explanations and decisions agree when no prohibitions apply."""

    @pytest.fixture(params=["single", "two_pc", "veto", "wildcard", "non_recursive", "nested"])
    def scenario(self, request, graph):
        if request.param in ("two_pc", "veto"):
            add_node(graph, "pc2", NodeType.PC)
            add_node(graph, "oa2", NodeType.OA, "pc2")
            graph.assign("o1", "oa2")
            if request.param == "two_pc":
                graph.associate("ua1", "oa2", ["read"])
        elif request.param == "wildcard":
            graph.associate("ua1", "oa1", [ALL_OPERATIONS, "read"])
        elif request.param == "non_recursive":
            graph.associate("ua1", "oa1", ["read", "assign to"], recursive=False)
        elif request.param == "nested":
            add_node(graph, "oa1a", NodeType.OA, "oa1")
            add_node(graph, "ua0", NodeType.UA, "pc1")
            graph.assign("ua1", "ua0")
            graph.assign("o1", "oa1a")
            graph.associate("ua0", "oa1a", ["delete", "assign to"], recursive=False)
        return graph

    @pytest.mark.parametrize("user", ["u1", "u2", "ua1"])
    @pytest.mark.parametrize("target", ["o1", "oa1"])
    def test_list_equals_explain(self, scenario, user, target):
        decider = PolicyReviewDecider(scenario)
        explainer = AccessExplainer(scenario)
        assert decider.list(user, None, target) == explainer.explain(user, target).permissions
