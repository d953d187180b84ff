"""Tests for the reseller tree."""

import logging

import pandas as pd
import pytest

from lotto_core.exceptions import MissingNodeError
from lotto_core.hierarchy import (
    AGENCIA,
    COMERCIALIZADORA,
    TAQUILLA,
    ResellerNode,
    ResellerTree,
)


@pytest.fixture
def tree(nodes_frame: pd.DataFrame) -> ResellerTree:
    return ResellerTree.from_frame(nodes_frame)


def test_children_keep_listing_order(tree: ResellerTree) -> None:
    """Test that child lists follow the order nodes were listed."""
    assert tree.children("adm") == ["c1", "c2"]
    assert tree.children("c1") == ["s1", "a2"]
    assert tree.children("a1") == ["t1", "t2"]
    assert tree.children("t1") == []


def test_from_frame_cleans_values(tree: ResellerTree) -> None:
    """Test that NaN shares become None and kinds are normalized."""
    c1 = tree.get("c1")
    t1 = tree.get("t1")

    assert c1.kind == COMERCIALIZADORA
    assert c1.share_on_sales == 5.0
    assert c1.share_on_profits == 50.0
    assert t1.share_on_sales is None
    assert t1.is_taquilla


def test_descendant_taquillas(tree: ResellerTree) -> None:
    """Test collecting taquillas below a node."""
    assert list(tree.descendant_taquillas("c1")) == ["t1", "t2", "t3"]
    assert list(tree.descendant_taquillas("a2")) == ["t3"]
    assert list(tree.descendant_taquillas("t2")) == ["t2"]
    assert list(tree.descendant_taquillas("c2")) == []


def test_post_order_puts_children_first(tree: ResellerTree) -> None:
    """Test that every node comes after all of its children."""
    order = tree.post_order(["c1"])
    position = {node_id: i for i, (node_id, _) in enumerate(order)}

    assert [node_id for node_id, _ in order] == ["t1", "t2", "a1", "s1", "t3", "a2", "c1"]
    for node_id, _ in order:
        for child_id in tree.children(node_id):
            assert position[child_id] < position[node_id]
    assert dict(order)["c1"] == 0
    assert dict(order)["t1"] == 3


def test_post_order_handles_deep_chains() -> None:
    """Test that a very deep chain does not hit recursion limits."""
    nodes = [ResellerNode("n0", AGENCIA)]
    nodes += [ResellerNode(f"n{i}", AGENCIA, parent_id=f"n{i - 1}") for i in range(1, 3000)]
    tree = ResellerTree(nodes)

    order = tree.post_order(["n0"])

    assert len(order) == 3000
    assert order[0] == ("n2999", 2999)
    assert order[-1] == ("n0", 0)


def test_dangling_parent_becomes_root(caplog: pytest.LogCaptureFixture) -> None:
    """Test that a node whose parent is missing is promoted to root with a warning."""
    with caplog.at_level(logging.WARNING):
        tree = ResellerTree(
            [
                ResellerNode("a1", AGENCIA),
                ResellerNode("t1", TAQUILLA, parent_id="a1"),
                ResellerNode("t9", TAQUILLA, parent_id="ghost"),
            ]
        )

    assert tree.roots() == ["a1", "t9"]
    assert tree.is_dangling("t9")
    assert not tree.is_dangling("a1")
    assert "missing parent ghost" in caplog.text


def test_parent_cycle_is_broken(caplog: pytest.LogCaptureFixture) -> None:
    """Test that a parent cycle is broken by promoting one member to root."""
    with caplog.at_level(logging.WARNING):
        tree = ResellerTree(
            [
                ResellerNode("x", AGENCIA, parent_id="y"),
                ResellerNode("y", AGENCIA, parent_id="x"),
                ResellerNode("t", TAQUILLA, parent_id="x"),
            ]
        )

    assert len(tree.roots()) == 1
    root = tree.roots()[0]
    assert tree.is_dangling(root)
    assert sorted(tree.iter_subtree(root)) == ["t", "x", "y"]
    assert "cycle" in caplog.text


def test_cycle_hanging_node_is_not_detached() -> None:
    """Test that a node hanging off a cycle stays under its parent."""
    tree = ResellerTree(
        [
            ResellerNode("t", TAQUILLA, parent_id="x"),
            ResellerNode("x", AGENCIA, parent_id="y"),
            ResellerNode("y", AGENCIA, parent_id="x"),
        ]
    )

    assert "t" not in tree.roots()
    assert "t" in tree.children("x")
    assert list(tree.descendant_taquillas(tree.roots()[0])) == ["t"]


def test_duplicate_ids_keep_first(caplog: pytest.LogCaptureFixture) -> None:
    """Test that repeated node ids keep the first occurrence."""
    with caplog.at_level(logging.WARNING):
        tree = ResellerTree(
            [
                ResellerNode("a1", AGENCIA, name="first"),
                ResellerNode("a1", AGENCIA, name="second"),
            ]
        )

    assert len(tree) == 1
    assert tree.get("a1").name == "first"
    assert "Duplicate node id a1" in caplog.text


def test_missing_node_raises(tree: ResellerTree) -> None:
    """Test that unknown ids raise MissingNodeError, which is also a KeyError."""
    with pytest.raises(MissingNodeError) as excinfo:
        tree.get("nope")
    assert excinfo.value.node_id == "nope"
    assert "nope" in str(excinfo.value)

    with pytest.raises(KeyError):
        tree.children("nope")
    with pytest.raises(MissingNodeError):
        tree.post_order(["nope"])


def test_top_level_comercializadoras(tree: ResellerTree) -> None:
    """Test that top-level comercializadoras hang from an admin or nothing."""
    assert tree.top_level(COMERCIALIZADORA) == ["c1", "c2"]
    assert tree.top_level(AGENCIA) == []


def test_to_frame_round_trips_listing(tree: ResellerTree, nodes_frame: pd.DataFrame) -> None:
    """Test that to_frame lists every node once with NODE_COLUMNS."""
    frame = tree.to_frame()

    assert list(frame.columns) == list(nodes_frame.columns)
    assert frame["node_id"].tolist() == nodes_frame["node_id"].tolist()


def test_rows_without_id_are_skipped(caplog: pytest.LogCaptureFixture) -> None:
    """Test that listing rows without node_id are skipped with a warning."""
    frame = pd.DataFrame({"node_id": ["a1", None], "kind": ["agencia", "taquilla"]})

    with caplog.at_level(logging.WARNING):
        tree = ResellerTree.from_frame(frame)

    assert len(tree) == 1
    assert "without node_id" in caplog.text
