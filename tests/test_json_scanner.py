"""Tests for json_scanner.py — structural detection of review-like objects."""

from __future__ import annotations

from dataclasses import replace

import pytest

from config.settings import DEFAULT_THRESHOLDS
from json_scanner import is_review_like, scan


REVIEW = {"username": "alice99", "stars": 5, "comment": "Great seller"}


class TestIsReviewLike:

    def test_all_three_terms(self):
        assert is_review_like(REVIEW)

    def test_keys_match_by_substring_and_case(self):
        assert is_review_like({"buyerName": "x", "starRating": 4, "reviewText": "ok"})

    @pytest.mark.parametrize("obj", [
        {"username": "a", "comment": "b"},          # no rating
        {"username": "a", "rating": 5},             # "username" has no text term
        {"rating": 5, "comment": "b"},              # no user
        "username rating comment",
        ["username", "rating", "comment"],
        None,
    ])
    def test_incomplete_or_non_object(self, obj):
        assert not is_review_like(obj)


class TestScan:

    @pytest.mark.parametrize("payload", [[], {}, None, "text", 42])
    def test_empty_or_scalar(self, payload):
        assert scan(payload) == []

    def test_single_review_in_array(self):
        assert scan([REVIEW]) == [REVIEW]

    def test_nested_payload(self, review_payload):
        found = scan(review_payload)
        assert [f["buyer"]["username"] for f in found] == ["pack_ripper", "slab_king"]

    def test_non_objects_in_array_are_skipped(self):
        assert scan([1, "two", None, REVIEW]) == [REVIEW]

    def test_nested_collections_found_after_parent_batch(self):
        reply = {"username": "seller", "rating": 5, "message": "thank you!"}
        parent = dict(REVIEW, replies=[reply])
        assert scan({"items": [parent]}) == [parent, reply]

    def test_document_order_across_arrays(self):
        first = dict(REVIEW, username="first")
        second = dict(REVIEW, username="second")
        payload = {"a": [first], "b": {"c": [second]}}
        assert scan(payload) == [first, second]

    def test_no_dedup_at_this_stage(self):
        assert scan([REVIEW, REVIEW]) == [REVIEW, REVIEW]

    def test_depth_bound(self):
        th = replace(DEFAULT_THRESHOLDS, json_max_depth=3)
        deep = [REVIEW]
        for _ in range(5):
            deep = {"wrap": deep}
        assert scan(deep, th) == []
        assert len(scan(deep)) == 1

    def test_self_reference_is_walked_once(self):
        loop: dict = {"items": [REVIEW]}
        loop["self"] = loop
        assert scan(loop) == [REVIEW]

    def test_list_containing_itself_twice(self):
        items: list = [REVIEW]
        items.append(items)
        items.append(items)
        assert scan(items) == [REVIEW]

    def test_mutual_reference(self):
        a: dict = {"reviews": [REVIEW]}
        b: dict = {"back": a}
        a["next"] = b
        assert scan({"root": a, "again": b}) == [REVIEW, REVIEW]

    def test_batch_cap(self):
        th = replace(DEFAULT_THRESHOLDS, json_batch_cap=2)
        assert len(scan([REVIEW] * 5, th)) == 2
