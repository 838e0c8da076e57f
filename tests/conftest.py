import random

import pytest


@pytest.fixture(params=[(4, 2), (4, 1), (8, 3), (16, 8)], ids=lambda p: f"M{p[0]}m{p[1]}")
def fanout(request):
    """(max_entries, min_entries) pairs covering the default and edge configurations."""
    return request.param


@pytest.fixture
def random_points():
    """200 distinct pseudo-random points, some on a coarse grid to force ties."""
    rng = random.Random(1234)
    pts = set()
    while len(pts) < 150:
        pts.add((rng.uniform(-100.0, 100.0), rng.uniform(-100.0, 100.0)))
    while len(pts) < 200:
        pts.add((float(rng.randint(0, 10)), float(rng.randint(0, 10))))
    out = sorted(pts)
    rng.shuffle(out)
    return out
