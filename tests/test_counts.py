"""Tests for tag count aggregation over event code records."""
import math

import pytest

from conftest import RSVP_TOTAL_INSTANCES
from hedtree import counts as counts_module
from hedtree.counts import (
    InvalidRecordError,
    count_tags,
    is_countable,
    normalize_ignore_tags,
    parse_records,
    record_tags,
)
from hedtree.tags import is_tag_child


class TestCountTags:

    def test_two_sibling_records(self):
        counts = count_tags([
            {"tag": "A/B", "numberOfInstances": 10},
            {"tag": "A/C", "numberOfInstances": 5},
        ])
        assert {tag: entry["count"] for tag, entry in counts.items()} == {
            "A": 15,
            "A/B": 10,
            "A/C": 5,
        }
        assert counts["A"]["logCount"] == pytest.approx(math.log(10) + math.log(5))
        assert counts["A/B"]["logCount"] == pytest.approx(math.log(10))

    def test_default_ignores_drop_label_branch(self):
        counts = count_tags([
            {"tag": "Event/Label/Foo, Event/Category/Bar", "numberOfInstances": 4},
        ])
        assert set(counts) == {"Event", "Event/Category", "Event/Category/Bar"}
        assert counts["Event"]["count"] == 4

    def test_record_with_only_ignored_tags_contributes_nothing(self):
        counts = count_tags([
            {"tag": "Event/Label/Foo, Event/Description/Some text", "numberOfInstances": 4},
        ])
        assert counts == {}

    def test_custom_ignores_are_normalized(self):
        counts = count_tags(
            [{"tag": "Attribute/Onset, Item/Cross", "numberOfInstances": 2}],
            ignore_tags={"/Attribute/"},
        )
        assert set(counts) == {"Item", "Item/Cross"}

    def test_ignore_set_normalized_once_per_batch(self, monkeypatch):
        calls = []

        def tracking_normalize(ignore_tags):
            calls.append(ignore_tags)
            return normalize_ignore_tags(ignore_tags)

        monkeypatch.setattr(counts_module, "normalize_ignore_tags", tracking_normalize)
        records = [{"tag": f"Item/{i}", "numberOfInstances": 1} for i in range(3)]
        counts = count_tags(records, ignore_tags={"/Item/2/"})
        assert len(calls) == 1
        assert "Item/2" not in counts
        assert counts["Item"]["count"] == 2

    def test_empty_ignore_set_counts_everything(self):
        counts = count_tags(
            [{"tag": "Event/Label/Foo", "numberOfInstances": 1}],
            ignore_tags=set(),
        )
        assert set(counts) == {"Event", "Event/Label", "Event/Label/Foo"}

    def test_shared_ancestor_counted_once_per_record(self):
        counts = count_tags([
            {"tag": "A/B, A/C, (A/B)", "numberOfInstances": 3},
            {"tag": "A/D", "numberOfInstances": 2},
        ])
        assert counts["A"]["count"] == 5
        assert counts["A/B"]["count"] == 3
        assert counts["A"]["logCount"] == pytest.approx(math.log(3) + math.log(2))

    @pytest.mark.parametrize("instances", [0, -3, None, True, "5", float("nan"), float("inf")])
    def test_non_positive_or_non_numeric_counts_skipped(self, instances):
        counts = count_tags([{"tag": "A/B", "numberOfInstances": instances}])
        assert counts == {}

    def test_missing_count_skipped(self):
        assert count_tags([{"tag": "A/B"}]) == {}

    def test_float_counts_accepted(self):
        counts = count_tags([{"tag": "A", "numberOfInstances": 2.5}])
        assert counts["A"]["count"] == 2.5

    def test_empty_expressions_skipped(self):
        counts = count_tags([{"tag": "A, , (), /", "numberOfInstances": 1}])
        assert set(counts) == {"A"}

    def test_non_string_tag_on_countable_record_fails_batch(self):
        records = [
            {"tag": "A/B", "numberOfInstances": 10},
            {"tag": 42, "numberOfInstances": 5},
        ]
        with pytest.raises(InvalidRecordError, match="Record 1"):
            count_tags(records)

    def test_missing_tag_on_uncountable_record_is_skipped(self):
        counts = count_tags([
            {"numberOfInstances": 0},
            {"tag": "A", "numberOfInstances": 1},
        ])
        assert set(counts) == {"A"}

    def test_non_object_record_fails_batch(self):
        with pytest.raises(InvalidRecordError):
            count_tags(["A/B"])

    def test_repeat_runs_give_equal_maps(self, rsvp_records):
        assert count_tags(rsvp_records) == count_tags(rsvp_records)

    def test_input_records_not_mutated(self, rsvp_records):
        before = [dict(r) for r in rsvp_records]
        count_tags(rsvp_records)
        assert rsvp_records == before


class TestRsvpCounts:
    """Aggregation over real event codes."""

    def test_every_record_reaches_event(self, rsvp_records):
        counts = count_tags(rsvp_records)
        assert counts["Event"]["count"] == RSVP_TOTAL_INSTANCES
        assert counts["Event/Category"]["count"] == RSVP_TOTAL_INSTANCES

    def test_free_text_tags_absent(self, rsvp_records):
        counts = count_tags(rsvp_records)
        assert not any(tag.startswith(("Event/Label", "Event/Description")) for tag in counts)

    def test_backslash_tags_merge_with_slash_tags(self, rsvp_records):
        counts = count_tags(rsvp_records)
        # Three records carry Attribute/Onset, one written with backslashes
        assert counts["Attribute/Onset"]["count"] == 333917 + 1224 + 259
        assert "Event/Category/Experiment control/Sequence/Block" in counts

    def test_tilde_joined_tags_counted(self, rsvp_records):
        counts = count_tags(rsvp_records)
        assert counts["Participant"]["count"] == 333917 + 3976 + 5010 + 259
        assert counts["Action/Button press/Keyboard"]["count"] == 5010

    def test_ancestors_count_at_least_descendants(self, rsvp_records):
        counts = count_tags(rsvp_records)
        for parent in counts:
            for child in counts:
                if is_tag_child(parent, child):
                    assert counts[parent]["count"] >= counts[child]["count"]


class TestRecordTags:

    def test_order_follows_first_appearance(self):
        assert record_tags("B/C, A, B") == ["B", "B/C", "A"]

    def test_takes_normalized_ignore_set(self):
        ignore_tags = normalize_ignore_tags({"\\Item\\Cross\\"})
        assert ignore_tags == frozenset({"Item/Cross"})
        assert record_tags("Item/Cross/Red, Item/Dot", ignore_tags) == ["Item", "Item/Dot"]

    def test_is_countable(self):
        assert is_countable(1)
        assert is_countable(0.5)
        assert not is_countable(0)
        assert not is_countable(False)


class TestParseRecords:

    def test_bare_list(self):
        assert parse_records([{"tag": "A"}]) == [{"tag": "A"}]

    def test_records_key(self):
        assert parse_records({"records": [{"tag": "A"}]}) == [{"tag": "A"}]

    def test_event_codes_key_single_object(self):
        assert parse_records({"eventCodes": {"tag": "A"}}) == [{"tag": "A"}]

    def test_object_without_record_list(self):
        with pytest.raises(InvalidRecordError):
            parse_records({"foo": []})

    def test_scalar_root(self):
        with pytest.raises(InvalidRecordError):
            parse_records("A/B")

    def test_non_object_entry(self):
        with pytest.raises(InvalidRecordError, match="Record 1"):
            parse_records([{"tag": "A"}, 3])
