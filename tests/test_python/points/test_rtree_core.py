from rtree2d import RTree, TreeObserver

DIAGONAL = [(0.0, 0.0), (1.0, 1.0), (2.0, 2.0), (3.0, 3.0)]


def _diagonal_tree(n):
    tree = RTree(max_entries=4)
    for i in range(n):
        tree.insert((float(i), float(i)))
    return tree


def test_four_points_fit_in_root_leaf():
    tree = _diagonal_tree(4)
    assert len(tree) == 4
    assert tree.height == 1
    assert tree.bounds == (0.0, 0.0, 3.0, 3.0)
    assert tree.get_all_node_boundaries() == [(0.0, 0.0, 3.0, 3.0)]
    tree.check_invariants()


def test_fifth_point_splits_root_once():
    splits = []

    class Recorder(TreeObserver):
        def on_split(self, original, sibling):
            splits.append((len(original.entries), len(sibling.entries)))

    tree = RTree(max_entries=4, observer=Recorder())
    for i in range(5):
        tree.insert((float(i), float(i)))

    assert splits == [(2, 3)]
    assert tree.height == 2
    assert sorted(tree.get_all_node_boundaries()) == [
        (0.0, 0.0, 1.0, 1.0),
        (0.0, 0.0, 4.0, 4.0),
        (2.0, 2.0, 4.0, 4.0),
    ]
    assert sorted(tree.query((0, 0, 5, 5))) == [(float(i), float(i)) for i in range(5)]
    tree.check_invariants()


def test_delete_without_underflow_keeps_shape():
    tree = _diagonal_tree(5)
    assert tree.delete((2.0, 2.0)) is True
    assert len(tree) == 4
    assert tree.height == 2
    assert sorted(tree.query((0, 0, 5, 5))) == [(0.0, 0.0), (1.0, 1.0), (3.0, 3.0), (4.0, 4.0)]
    tree.check_invariants()


def test_delete_with_underflow_condenses_and_reinserts():
    events = []

    class Recorder(TreeObserver):
        def on_underflow(self, node):
            events.append(("underflow", node.points()))

        def on_reinsert(self, point):
            events.append(("reinsert", point))

    tree = _diagonal_tree(5)
    tree.observer = Recorder()

    assert tree.delete((0.0, 0.0)) is True

    assert events == [("underflow", [(1.0, 1.0)]), ("reinsert", (1.0, 1.0))]
    # the lone remaining child was promoted to root and took the orphan back
    assert tree.height == 1
    assert len(tree) == 4
    assert sorted(tree) == [(1.0, 1.0), (2.0, 2.0), (3.0, 3.0), (4.0, 4.0)]
    tree.check_invariants()


def test_nearest_neighbors_on_diagonal():
    tree = _diagonal_tree(4)
    assert tree.nearest_neighbors((0.0, 0.0), 2) == [(0.0, 0.0), (1.0, 1.0)]
    assert tree.nearest_neighbors((2.9, 3.2), 1) == [(3.0, 3.0)]
    assert tree.nearest_neighbor((10.0, 10.0)) == (3.0, 3.0)
    assert tree.nearest_neighbors((0.0, 0.0), 10) == DIAGONAL


def test_disjoint_query_is_pruned_at_root():
    visits = []

    class Recorder(TreeObserver):
        def on_node_visited(self, node, pruned):
            visits.append((node.is_leaf, pruned))

    tree = _diagonal_tree(9)
    tree.observer = Recorder()

    assert tree.query((50.0, 50.0, 60.0, 60.0)) == []
    assert visits == [(False, True)]


def test_query_touching_edges_is_inclusive():
    tree = _diagonal_tree(4)
    assert sorted(tree.query((1.0, 1.0, 2.0, 2.0))) == [(1.0, 1.0), (2.0, 2.0)]
    # swapped corners are normalized
    assert sorted(tree.query((2.0, 2.0, 1.0, 1.0))) == [(1.0, 1.0), (2.0, 2.0)]
    assert tree.query((1.5, 1.5, 1.6, 1.6)) == []


def test_duplicates_are_ignored():
    tree = RTree()
    assert tree.insert((1, 2)) is True
    assert tree.insert((1.0, 2.0)) is False
    assert tree.insert([1.0, 2.0]) is False
    assert len(tree) == 1
    assert (1, 2) in tree
    assert (1.0, 2.0000001) not in tree
    tree.check_invariants()


def test_empty_tree_operations():
    tree = RTree()
    assert tree.is_empty()
    assert len(tree) == 0
    assert tree.height == 0
    assert tree.bounds is None
    assert tree.query((-1e9, -1e9, 1e9, 1e9)) == []
    assert tree.nearest_neighbors((0.0, 0.0), 3) == []
    assert tree.nearest_neighbor((0.0, 0.0)) is None
    assert tree.delete((0.0, 0.0)) is False
    assert list(tree) == []
    assert tree.get_all_node_boundaries() == []
    tree.check_invariants()


def test_k_zero_or_negative_returns_empty():
    tree = _diagonal_tree(4)
    assert tree.nearest_neighbors((0.0, 0.0), 0) == []
    assert tree.nearest_neighbors((0.0, 0.0), -3) == []


def test_insert_then_delete_all_empties_tree():
    tree = _diagonal_tree(30)
    for i in range(30):
        assert tree.delete((float(i), float(i))) is True
        tree.check_invariants()
    assert tree.is_empty()
    assert tree.height == 0
    assert tree.delete((0.0, 0.0)) is False


def test_update_moves_point():
    tree = _diagonal_tree(6)
    assert tree.update((2.0, 2.0), (2.5, -1.0)) is True
    assert (2.0, 2.0) not in tree
    assert (2.5, -1.0) in tree
    assert len(tree) == 6
    # target already present or source missing leaves the tree untouched
    assert tree.update((3.0, 3.0), (4.0, 4.0)) is False
    assert tree.update((42.0, 42.0), (43.0, 43.0)) is False
    assert (3.0, 3.0) in tree and (43.0, 43.0) not in tree
    assert tree.update((1.0, 1.0), (1.0, 1.0)) is True
    tree.check_invariants()


def test_clear_keeps_configuration():
    tree = RTree(max_entries=6, min_entries=2)
    tree.insert_many([(float(i), 0.0) for i in range(20)])
    tree.clear()
    assert tree.is_empty()
    assert tree.max_entries == 6
    assert tree.min_entries == 2
    tree.insert((1.0, 1.0))
    assert list(tree) == [(1.0, 1.0)]
    tree.check_invariants()


def test_insert_many_reports_duplicates():
    tree = RTree()
    res = tree.insert_many([(0, 0), (1, 1), (0, 0), (2, 2)])
    assert res.count == 3
    assert res.duplicates == 1
    assert res.total == 4
    res2 = tree.insert_many([(1, 1), (5, 5)])
    assert (res2.count, res2.duplicates) == (1, 1)
    assert len(tree) == 4


def test_iteration_is_a_snapshot():
    tree = _diagonal_tree(8)
    seen = []
    for p in tree:
        seen.append(p)
        tree.delete(p)
    assert sorted(seen) == [(float(i), float(i)) for i in range(8)]
    assert tree.is_empty()


def test_results_do_not_alias_tree_state():
    tree = _diagonal_tree(8)
    found = tree.query((0, 0, 10, 10))
    found.clear()
    assert len(tree.query((0, 0, 10, 10))) == 8
