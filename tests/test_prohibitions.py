"""Tests for the prohibition store and evaluator."""

from __future__ import annotations

import pytest

from ngac.exceptions import InvalidArgumentError, ProhibitionNotFoundError
from ngac.graph import ProhibitionStore
from ngac.operations import OperationSet
from ngac.prohibitions import MemoryProhibitions, ProhibitionEvaluator
from ngac.types import Prohibition, ProhibitionNode


def make_prohibition(name="deny", subject="u1", ops=("write",), intersection=True, nodes=()):
    return Prohibition(
        name=name,
        subject=subject,
        operations=OperationSet(ops),
        intersection=intersection,
        nodes=[ProhibitionNode(*n) if isinstance(n, tuple) else ProhibitionNode(n) for n in nodes],
    )


class TestMemoryProhibitions:
    """Test MemoryProhibitions."""

    def test_satisfies_store_protocol(self, prohibitions):
        assert isinstance(prohibitions, ProhibitionStore)

    def test_add_and_get(self, prohibitions):
        prohibitions.add(make_prohibition(nodes=["oa1"]))
        assert prohibitions.get("deny").node_ids() == ["oa1"]
        assert len(prohibitions) == 1

    def test_add_duplicate(self, prohibitions):
        prohibitions.add(make_prohibition())
        with pytest.raises(InvalidArgumentError):
            prohibitions.add(make_prohibition())

    def test_add_empty_name(self, prohibitions):
        with pytest.raises(InvalidArgumentError):
            prohibitions.add(make_prohibition(name=""))

    def test_get_missing(self, prohibitions):
        with pytest.raises(ProhibitionNotFoundError):
            prohibitions.get("missing")

    def test_get_prohibitions_for(self, prohibitions):
        prohibitions.add(make_prohibition(name="a", subject="u1"))
        prohibitions.add(make_prohibition(name="b", subject="ua1"))
        prohibitions.add(make_prohibition(name="c", subject="u1"))
        assert [p.name for p in prohibitions.get_prohibitions_for("u1")] == ["a", "c"]
        assert prohibitions.get_prohibitions_for("nobody") == []

    def test_reads_are_copies(self, prohibitions):
        original = make_prohibition()
        prohibitions.add(original)
        original.operations.add("read")
        prohibitions.get("deny").operations.add("delete")
        assert prohibitions.get("deny").operations == {"write"}
        assert [p.operations for p in prohibitions.get_all()] == [{"write"}]

    def test_update(self, prohibitions):
        prohibitions.add(make_prohibition())
        prohibitions.update(make_prohibition(ops=("read",)))
        assert prohibitions.get("deny").operations == {"read"}

    def test_update_missing(self, prohibitions):
        with pytest.raises(ProhibitionNotFoundError):
            prohibitions.update(make_prohibition())

    def test_remove(self, prohibitions):
        prohibitions.add(make_prohibition())
        assert prohibitions.remove("deny") is True
        assert prohibitions.remove("deny") is False
        assert len(prohibitions) == 0


class TestProhibitionEvaluator:
    """Test prohibition firing rules."""

    @pytest.fixture
    def evaluator(self):
        return ProhibitionEvaluator()

    @pytest.mark.parametrize("reached,expected", [
        ({"A"}, True),
        ({"A", "B"}, False),
        (set(), False),
        ({"B"}, False),
    ])
    def test_intersection_with_complement(self, evaluator, reached, expected):
        prohibition = make_prohibition(nodes=[("A", False), ("B", True)])
        assert evaluator.fires(prohibition, reached) is expected

    @pytest.mark.parametrize("reached,expected", [
        ({"A"}, True),
        ({"B"}, True),
        ({"A", "B"}, True),
        (set(), False),
    ])
    def test_union(self, evaluator, reached, expected):
        prohibition = make_prohibition(intersection=False, nodes=["A", "B"])
        assert evaluator.fires(prohibition, reached) is expected

    def test_union_fires_on_earlier_condition(self, evaluator):
        prohibition = make_prohibition(intersection=False, nodes=["A", ("B", True)])
        # A holds, B (complement) does not
        assert evaluator.fires(prohibition, {"A", "B"}) is True

    def test_union_complement(self, evaluator):
        prohibition = make_prohibition(intersection=False, nodes=[("A", True)])
        assert evaluator.fires(prohibition, set()) is True
        assert evaluator.fires(prohibition, {"A"}) is False

    @pytest.mark.parametrize("intersection", [True, False])
    def test_no_conditions_never_fires(self, evaluator, intersection):
        prohibition = make_prohibition(intersection=intersection)
        assert evaluator.fires(prohibition, set()) is False

    def test_denied_operations(self, evaluator):
        write = make_prohibition(name="w", ops=("write",), nodes=["oa1"])
        delete = make_prohibition(name="d", ops=("delete",), nodes=["oa2"])
        denied = evaluator.denied_operations([write, delete], {"w": {"oa1"}})
        assert denied == {"write"}
        assert isinstance(denied, OperationSet)

    def test_denied_operations_union_of_firing(self, evaluator):
        write = make_prohibition(name="w", ops=("write",), nodes=["oa1"])
        delete = make_prohibition(name="d", ops=("delete", "write"), nodes=["oa1"])
        denied = evaluator.denied_operations([write, delete], {"w": {"oa1"}, "d": {"oa1"}})
        assert denied == {"write", "delete"}
