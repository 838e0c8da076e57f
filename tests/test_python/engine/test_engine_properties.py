import math
import random

from rtree2d import RTree
from rtree2d._engine import RTreeEngine


def _brute_query(points, rect):
    x0, y0, x1, y1 = rect
    return sorted(p for p in points if x0 <= p[0] <= x1 and y0 <= p[1] <= y1)


def _dist(p, q):
    return math.hypot(p[0] - q[0], p[1] - q[1])


def test_invariants_hold_through_inserts_and_deletes(fanout, random_points):
    max_entries, min_entries = fanout
    tree = RTree(max_entries=max_entries, min_entries=min_entries)
    for i, p in enumerate(random_points):
        assert tree.insert(p) is True
        if i % 10 == 0:
            tree.check_invariants()
    tree.check_invariants()
    assert len(tree) == len(random_points)

    rng = random.Random(99)
    order = random_points[:]
    rng.shuffle(order)
    remaining = set(random_points)
    for i, p in enumerate(order):
        assert tree.delete(p) is True
        remaining.discard(p)
        assert p not in tree
        if i % 10 == 0:
            tree.check_invariants()
            assert len(tree) == len(remaining)
    tree.check_invariants()
    assert tree.is_empty()


def test_query_matches_brute_force(fanout, random_points):
    max_entries, min_entries = fanout
    tree = RTree(max_entries=max_entries, min_entries=min_entries)
    tree.insert_many(random_points)

    rng = random.Random(7)
    for _ in range(40):
        xa, xb = sorted(rng.uniform(-120, 120) for _ in range(2))
        ya, yb = sorted(rng.uniform(-120, 120) for _ in range(2))
        rect = (xa, ya, xb, yb)
        assert sorted(tree.query(rect)) == _brute_query(random_points, rect)

    # grid-aligned rect whose edges pass exactly through stored points
    assert sorted(tree.query((2, 3, 7, 7))) == _brute_query(random_points, (2, 3, 7, 7))


def test_nearest_neighbors_match_brute_force(fanout, random_points):
    max_entries, min_entries = fanout
    tree = RTree(max_entries=max_entries, min_entries=min_entries)
    tree.insert_many(random_points)

    rng = random.Random(11)
    for _ in range(25):
        src = (rng.uniform(-150, 150), rng.uniform(-150, 150))
        k = rng.randint(1, 30)
        got = tree.nearest_neighbors(src, k)
        expected = sorted(_dist(p, src) for p in random_points)[:k]

        assert len(got) == k
        assert len(set(got)) == k
        dists = [_dist(p, src) for p in got]
        assert dists == sorted(dists)
        assert dists == expected


def test_nearest_results_are_subset_of_enclosing_query(random_points):
    tree = RTree()
    tree.insert_many(random_points)
    src = (3.3, 4.4)
    got = tree.nearest_neighbors(src, 12)
    xs = [p[0] for p in got]
    ys = [p[1] for p in got]
    enclosing = tree.query((min(xs), min(ys), max(xs), max(ys)))
    assert set(got) <= set(enclosing)


def test_nearest_returns_everything_when_k_exceeds_size(random_points):
    tree = RTree()
    tree.insert_many(random_points[:17])
    got = tree.nearest_neighbors((0.0, 0.0), 1000)
    assert sorted(got) == sorted(random_points[:17])


def test_interleaved_mutations_keep_size_consistent(fanout):
    max_entries, min_entries = fanout
    tree = RTree(max_entries=max_entries, min_entries=min_entries)
    model = set()
    rng = random.Random(2024)
    for step in range(1500):
        p = (float(rng.randint(0, 30)), float(rng.randint(0, 30)))
        if rng.random() < 0.6:
            assert tree.insert(p) is (p not in model)
            model.add(p)
        else:
            assert tree.delete(p) is (p in model)
            model.discard(p)
        if step % 50 == 0:
            tree.check_invariants()
            assert len(tree) == len(model)
    tree.check_invariants()
    assert sorted(tree) == sorted(model)


def test_engine_round_trips_through_bytes(random_points):
    engine = RTreeEngine(5, 2)
    for p in random_points:
        engine.insert(p)
    restored = RTreeEngine.from_bytes(engine.to_bytes())
    restored.check_invariants()
    assert restored.size == engine.size
    assert restored.node_boundaries() == engine.node_boundaries()
    assert restored.height() == engine.height()
