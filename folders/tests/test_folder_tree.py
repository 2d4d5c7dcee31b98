import sys

import pytest
from folders.models import FolderNode, FolderRecord
from folders.tree import (
    annotate,
    filter_children,
    filter_tree,
    find_node,
    insert_child,
    iter_nodes,
    iter_visible,
    synthesize,
)


def rec(folder_id, name, parent_id=None):
    return FolderRecord(id=folder_id, name=name, parent_id=parent_id)


@pytest.fixture
def drive_records():
    return [
        rec("f1", "Documents"),
        rec("f2", "Finance", "f1"),
        rec("f3", "Invoices", "f2"),
        rec("f4", "Photos"),
        rec("f5", "Receipts", "f1"),
        rec("f6", "Shared", "0AExternalRoot"),
    ]


def ancestors_path(root, target):
    """Rebuild the expected path of ``target`` from the names on its branch."""
    stack = [(root, [])]
    while stack:
        node, names = stack.pop()
        if node is target:
            return "/" + "/".join(names)
        for child in node.children:
            stack.append((child, names + [child.name]))
    raise AssertionError(f"{target!r} not reachable from root")


def test_empty_input_gives_bare_root():
    root = synthesize([])
    assert root.id == "root"
    assert root.name == "My Drive"
    assert root.path == "/"
    assert root.children == []


def test_single_top_level_folder():
    root = synthesize([rec("f1", "Documents")])
    assert [c.name for c in root.children] == ["Documents"]
    assert root.children[0].path == "/Documents"


def test_nested_folder_path():
    root = synthesize([rec("f1", "Documents"), rec("f2", "Finance", "f1")])
    finance = find_node(root, "f2")
    assert finance is not None
    assert finance.path == "/Documents/Finance"
    assert root.children[0].children == [finance]


def test_dangling_parent_is_promoted_to_root():
    root = synthesize([rec("f1", "X", "missing")])
    assert [c.id for c in root.children] == ["f1"]
    assert root.children[0].path == "/X"
    # the dangling reference is still shown
    assert root.children[0].parent_id == "missing"


def test_child_listed_before_parent():
    root = synthesize([rec("f2", "Finance", "f1"), rec("f1", "Documents")])
    assert [c.id for c in root.children] == ["f1"]
    assert find_node(root, "f2").path == "/Documents/Finance"


def test_every_record_appears_exactly_once(drive_records):
    root = synthesize(drive_records)
    ids = [node.id for node in iter_nodes(root) if node is not root]
    assert sorted(ids) == sorted(r.id for r in drive_records)
    assert len(ids) == len(set(ids))


def test_paths_follow_ancestor_names(drive_records):
    root = synthesize(drive_records)
    for node in iter_nodes(root):
        if node is root:
            assert node.path == "/"
        else:
            assert node.path == ancestors_path(root, node)


def test_siblings_keep_input_order(drive_records):
    root = synthesize(drive_records)
    assert [c.name for c in root.children] == ["Documents", "Photos", "Shared"]
    assert [c.name for c in find_node(root, "f1").children] == ["Finance", "Receipts"]


def test_two_folder_cycle_is_broken():
    root = synthesize([rec("a", "A", "b"), rec("b", "B", "a")])
    ids = [node.id for node in iter_nodes(root)]
    assert ids == ["root", "a", "b"]
    assert find_node(root, "a").path == "/A"
    assert find_node(root, "b").path == "/A/B"


def test_self_parent_is_promoted():
    root = synthesize([rec("a", "Loop", "a")])
    assert [c.id for c in root.children] == ["a"]
    assert root.children[0].children == []


def test_cycle_reached_from_outside():
    records = [rec("x", "Outside", "b"), rec("b", "B", "c"), rec("c", "C", "b")]
    root = synthesize(records)
    assert [c.id for c in root.children] == ["b"]
    assert find_node(root, "c").path == "/B/C"
    assert find_node(root, "x").path == "/B/Outside"


def test_duplicate_ids_collapse_into_one_node():
    records = [rec("d", "Old name"), rec("k", "Kid", "d"), rec("d", "New name")]
    root = synthesize(records)
    nodes = [n for n in iter_nodes(root) if n.id == "d"]
    assert len(nodes) == 1
    assert nodes[0].name == "New name"
    assert find_node(root, "k").path == "/New name/Kid"


def test_deep_hierarchy_does_not_recurse():
    depth = sys.getrecursionlimit() + 100
    records = [rec("n0", "n0")] + [rec(f"n{i}", f"n{i}", f"n{i - 1}") for i in range(1, depth)]
    root = synthesize(records)
    deepest = find_node(root, f"n{depth - 1}")
    assert deepest.path.count("/") == depth


def test_annotate_cycle_terminates():
    a = FolderNode(id="a", name="A")
    b = FolderNode(id="b", name="B")
    a.children.append(b)
    b.children.append(a)
    annotate(a, "/")
    assert b.path == "/A/B"
    assert a.path == "/A/B/A"


def test_annotate_root_path():
    root = FolderNode.synthetic_root([FolderNode(id="f1", name="Docs")])
    root.path = ""
    annotate(root)
    assert root.path == "/"
    assert root.children[0].path == "/Docs"


def test_annotate_keeps_synthetic_root_at_slash():
    root = synthesize([rec("f1", "Documents"), rec("f2", "Finance", "f1")])
    annotate(root, "/")
    assert root.path == "/"
    assert find_node(root, "f1").path == "/Documents"
    assert find_node(root, "f2").path == "/Documents/Finance"


def test_filter_children_is_shallow():
    root = synthesize([rec("f1", "Documents"), rec("f2", "Finance", "f1")])
    documents = find_node(root, "f1")
    assert [n.name for n in filter_children(documents.children, "fin")] == ["Finance"]
    assert filter_children(root.children, "fin") == []


def test_filter_is_case_insensitive():
    root = synthesize([rec("f1", "Tax Returns"), rec("f2", "photos")])
    assert [n.id for n in filter_children(root.children, "TAX")] == ["f1"]
    assert [n.id for n in filter_children(root.children, "")] == ["f1", "f2"]


def test_filter_tree_does_not_mutate(drive_records):
    root = synthesize(drive_records)
    filtered = filter_tree(root, "o")
    # Documents and Photos match, Shared does not; under Documents nothing matches "o"
    assert [c.name for c in filtered.children] == ["Documents", "Photos"]
    assert filtered.children[0].children == []
    assert len(root.children) == 3
    assert len(find_node(root, "f1").children) == 2
    assert filtered is not root


def test_iter_visible_respects_expansion(drive_records):
    root = synthesize(drive_records)
    rows = list(iter_visible(root, {"root"}))
    assert [(r.node.name, r.depth) for r in rows] == [
        ("My Drive", 0),
        ("Documents", 1),
        ("Photos", 1),
        ("Shared", 1),
    ]
    rows = list(iter_visible(root, {"root", "f1", "f2"}))
    assert [r.node.name for r in rows] == [
        "My Drive", "Documents", "Finance", "Invoices", "Receipts", "Photos", "Shared",
    ]
    assert rows[1].expanded is True


def test_iter_visible_filters_each_level(drive_records):
    root = synthesize(drive_records)
    rows = list(iter_visible(root, {"root", "f1"}, query="re"))
    # "Shared" matches at top level; Documents does not, so Receipts is hidden
    assert [r.node.name for r in rows] == ["My Drive", "Shared"]


def test_insert_child_annotates_new_node(drive_records):
    root = synthesize(drive_records)
    node = insert_child(root, "f2", rec("new", "2024", "f2"))
    assert node.path == "/Documents/Finance/2024"
    assert find_node(root, "f2").children[-1] is node
    fallback = insert_child(root, "nope", rec("new2", "Loose"))
    assert fallback.path == "/Loose"
    assert root.children[-1] is fallback


def test_root_survives_queries_it_does_not_match(drive_records):
    root = synthesize(drive_records)
    filtered = filter_tree(root, "photos")
    assert filtered.id == "root"
    assert [c.name for c in filtered.children] == ["Photos"]
    rows = list(iter_visible(root, {"root"}, query="zzz"))
    assert [r.node.id for r in rows] == ["root"]
