"""
test_bvh.py: Tests for BVH flattening, candidate queries and artifact loading.
"""

from __future__ import annotations

import json
import random

import pytest

from conftest import box, ref
from tzengine.bvh import BvhIndex, load_bvh
from tzengine.errors import BvhLoadError
from tzengine.geometry import BoundingBox


def _ids(refs):
    return [(r.timezone_id, r.ring_index) for r in refs]


# ════════════════════════════════════════════════════════════════
#  Flattening
# ════════════════════════════════════════════════════════════════

class TestFromDict:

    def test_arena_is_pre_order(self, bvh_tree):
        index = BvhIndex.from_dict(bvh_tree)
        assert len(index) == 5
        root = index.nodes[0]
        assert root.children == (1, 2)
        assert index.nodes[1].is_leaf
        assert index.nodes[2].children == (3, 4)

    def test_timezone_ids_are_uri_decoded(self, bvh_tree):
        index = BvhIndex.from_dict(bvh_tree)
        assert "America/New_York" in {r.timezone_id for r in index.refs()}

    def test_storage_key_keeps_encoded_form(self):
        tree = {"b": box(-10, -10, 10, 10), "p": [{"tz": "Test%2FZone(1)", "i": 0, "b": box(0, 0, 1, 1)}]}
        (only,) = BvhIndex.from_dict(tree).refs()
        assert only.timezone_id == "Test/Zone(1)"
        assert only.storage_key == "Test%2FZone(1)"

    def test_plus_sign_in_etc_zone_is_decoded(self):
        tree = {"b": box(-10, -10, 10, 10), "p": [ref("Etc/GMT+5", 0, box(0, 0, 1, 1))]}
        index = BvhIndex.from_dict(tree)
        assert _ids(index.refs()) == [("Etc/GMT+5", 0)]

    def test_bounds_is_root_box(self, bvh_tree):
        assert BvhIndex.from_dict(bvh_tree).bounds == BoundingBox(-180, -90, 180, 90)

    def test_deep_tree_does_not_hit_recursion_limit(self):
        depth = 5000
        node = {"b": box(0, 0, 1, 1), "p": [ref("Etc/UTC", depth, box(0, 0, 1, 1))]}
        for _ in range(depth):
            node = {"b": box(0, 0, 1, 1), "l": {"b": box(0, 0, 1, 1), "p": []}, "r": node}
        index = BvhIndex.from_dict(node)
        assert len(index) == 2 * depth + 1
        assert _ids(index.candidates((0.5, 0.5))) == [("Etc/UTC", depth)]


class TestMalformedTree:

    @pytest.mark.parametrize("tree, message", [
        ([], "not an object"),
        ({"p": []}, "Invalid bounding box"),
        ({"b": [[1, 1], [0, 0]], "p": []}, "Invalid bounding box"),
        ({"b": box(0, 0, 1, 1), "l": {"b": box(0, 0, 1, 1), "p": []}}, "only one child"),
        ({"b": box(0, 0, 1, 1), "p": {}}, "not an array"),
        ({"b": box(0, 0, 1, 1), "p": [{"i": 0, "b": box(0, 0, 1, 1)}]}, "no timezone id"),
        ({"b": box(0, 0, 1, 1), "p": [{"tz": "UTC", "i": -1, "b": box(0, 0, 1, 1)}]}, "ring index"),
        ({"b": box(0, 0, 1, 1), "p": [{"tz": "UTC", "i": True, "b": box(0, 0, 1, 1)}]}, "ring index"),
        ({"b": box(0, 0, 1, 1), "p": ["UTC"]}, "not an object"),
    ])
    def test_rejected(self, tree, message):
        with pytest.raises(BvhLoadError, match=message):
            BvhIndex.from_dict(tree)


# ════════════════════════════════════════════════════════════════
#  Candidate queries
# ════════════════════════════════════════════════════════════════

class TestCandidates:

    @pytest.fixture
    def index(self, bvh_tree) -> BvhIndex:
        return BvhIndex.from_dict(bvh_tree)

    def test_overlapping_leaves_are_all_visited_in_descent_order(self, index):
        assert _ids(index.candidates((7, 7))) == [
            ("Africa/Lagos", 0),
            ("Africa/Porto-Novo", 0),
            ("Africa/Douala", 0),
        ]

    def test_leaf_refs_are_filtered_by_their_own_box(self, index):
        # inside leaf A's box and Lagos's box, outside Porto-Novo's
        assert _ids(index.candidates((1, 1))) == [("Africa/Lagos", 0)]

    def test_multiple_rings_of_one_zone(self, index):
        assert _ids(index.candidates((-73, 36))) == [
            ("America/New_York", 0),
            ("America/New_York", 1),
        ]

    def test_box_edges_are_inclusive(self, index):
        assert _ids(index.candidates((15, 15))) == [("Africa/Douala", 0)]

    def test_point_outside_root_returns_empty(self):
        tree = {"b": box(0, 0, 10, 10), "p": [ref("Etc/UTC", 0, box(0, 0, 10, 10))]}
        assert BvhIndex.from_dict(tree).candidates((50, 50)) == []

    def test_open_ocean_returns_empty(self, index):
        assert index.candidates((-150.0, 0.0)) == []

    def test_root_leaf_is_scanned(self):
        tree = {"b": box(0, 0, 10, 10), "p": [ref("Etc/UTC", 3, box(0, 0, 10, 10))]}
        assert _ids(BvhIndex.from_dict(tree).candidates((5, 5))) == [("Etc/UTC", 3)]

    def test_no_false_negatives(self, index):
        rng = random.Random(1234)
        points = [(rng.uniform(-90, 30), rng.uniform(-10, 50)) for _ in range(2000)]
        # every bbox corner too, since edges are inclusive
        for r in index.refs():
            points.extend([(r.bbox.min_x, r.bbox.min_y), (r.bbox.max_x, r.bbox.max_y)])

        all_refs = list(index.refs())
        for point in points:
            found = index.candidates(point)
            for r in all_refs:
                if r.bbox.contains(point):
                    assert r in found, f"{r} missing for {point}"


# ════════════════════════════════════════════════════════════════
#  load_bvh
# ════════════════════════════════════════════════════════════════

class TestLoadBvh:

    def test_loads_from_disk(self, tmp_path, bvh_tree):
        path = tmp_path / "bvh.json"
        path.write_text(json.dumps(bvh_tree), encoding="utf-8")
        assert len(load_bvh(path)) == 5

    def test_missing_file_is_fatal(self, tmp_path):
        with pytest.raises(BvhLoadError, match="not found"):
            load_bvh(tmp_path / "nope.json")

    def test_invalid_json_is_fatal(self, tmp_path):
        path = tmp_path / "bvh.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(BvhLoadError, match="Invalid JSON"):
            load_bvh(path)

    def test_directory_instead_of_file_is_fatal(self, tmp_path):
        with pytest.raises(BvhLoadError):
            load_bvh(tmp_path)
