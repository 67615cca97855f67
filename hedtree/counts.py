"""
counts.py - Aggregate HED tag occurrence counts.

Each record names one or more tags and how many events carried them. A
record's count is added to every tag it names and to all of their ancestors,
so `Event` counts everything under `Event/Category/...`.
"""

import math
from numbers import Real

from hedtree.tags import (
    DEFAULT_IGNORE_TAGS,
    is_ignored,
    normalize_tag,
    split_compound_tag,
    strict_ancestors,
)

# Top-level keys that may hold a record list inside a JSON document
RECORD_LIST_KEYS = ("records", "eventCodes")


class InvalidRecordError(ValueError):
    """A record cannot be counted because its structure is malformed."""


def is_countable(value) -> bool:
    """Check if a numberOfInstances value is a positive, finite number."""
    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    return math.isfinite(value) and value > 0


def normalize_ignore_tags(ignore_tags) -> frozenset:
    """Normalize ignore entries the same way as tags."""
    return frozenset(normalize_tag(ignored) for ignored in ignore_tags)


def record_tags(hed_string: str, ignore_tags=DEFAULT_IGNORE_TAGS) -> list[str]:
    """
    Expand one HED string into the distinct tags it contributes to.

    Includes every ancestor of each named tag. Empty and ignored expressions
    are dropped. Order follows first appearance. `ignore_tags` must already
    be normalized (see normalize_ignore_tags).
    """
    tags = []
    seen = set()
    for expression in split_compound_tag(hed_string):
        tag = normalize_tag(expression)
        if not tag or is_ignored(tag, ignore_tags):
            continue
        for ancestor in strict_ancestors(tag) + [tag]:
            if ancestor not in seen:
                seen.add(ancestor)
                tags.append(ancestor)
    return tags


def count_tags(records, ignore_tags=DEFAULT_IGNORE_TAGS) -> dict[str, dict]:
    """
    Build the tag count map for a batch of records.

    Returns a dict mapping each tag to:
    - count: sum of numberOfInstances over contributing records
    - logCount: sum of ln(numberOfInstances) over contributing records

    Records without a positive numberOfInstances are skipped. A countable
    record whose `tag` is not a string raises InvalidRecordError and nothing
    is returned for the batch.
    """
    ignore_tags = normalize_ignore_tags(ignore_tags)
    tag_counts: dict[str, dict] = {}

    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise InvalidRecordError(f"Record {index}: must be an object")

        instances = record.get("numberOfInstances")
        if not is_countable(instances):
            continue

        hed_string = record.get("tag")
        if not isinstance(hed_string, str):
            raise InvalidRecordError(f"Record {index}: 'tag' must be a string")

        log_instances = math.log(instances)
        for tag in record_tags(hed_string, ignore_tags):
            entry = tag_counts.setdefault(tag, {"count": 0, "logCount": 0.0})
            entry["count"] += instances
            entry["logCount"] += log_instances

    return tag_counts


def parse_records(data) -> list[dict]:
    """
    Pull the record list out of a loaded JSON document.

    Accepts a bare array of records or an object holding one under
    `records` or `eventCodes`.
    """
    if isinstance(data, list):
        records = data
    elif isinstance(data, dict):
        for key in RECORD_LIST_KEYS:
            if key in data:
                records = data[key]
                break
        else:
            raise InvalidRecordError(
                f"Expected one of {', '.join(RECORD_LIST_KEYS)} in the document"
            )
        if isinstance(records, dict):
            records = [records]
    else:
        raise InvalidRecordError("Root must be an array of records or an object")

    if not isinstance(records, list):
        raise InvalidRecordError("Record list must be an array")

    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise InvalidRecordError(f"Record {index}: must be an object")

    return records
