"""
tags.py - Parse and normalize HED tag strings.

A HED string such as

    Event/Label/Target, (Item/Object/Vehicle ~ Participant/Effect/Visual)

carries several slash-delimited tags. Grouping parentheses and `~` joins are
flattened so every tag is handled at the same granularity.
"""

# Administrative tags holding free text; their values are unique per event
# and only clutter a treemap.
DEFAULT_IGNORE_TAGS = frozenset({
    "Event/Label",
    "Event/Description",
})


def split_compound_tag(raw: str) -> list[str]:
    """Split a raw HED string into individual (untrimmed) tag expressions."""
    hed_string = raw.strip()
    hed_string = hed_string.replace("(", "").replace(")", "")
    hed_string = hed_string.replace("~", ",")
    hed_string = hed_string.replace("\\", "/")
    return hed_string.split(",")


def normalize_tag(raw: str) -> str:
    """
    Trim a tag and drop one leading and one trailing slash.

    Case and inner whitespace are kept, so `Event/Category` and
    `event/category` stay distinct tags.
    """
    tag = raw.strip().replace("\\", "/")
    if tag.startswith("/"):
        tag = tag[1:]
    if tag.endswith("/"):
        tag = tag[:-1]
    return tag


def strict_ancestors(tag: str) -> list[str]:
    """Every prefix of `tag` that ends just before a `/`, shortest first."""
    return [tag[:i] for i, char in enumerate(tag) if char == "/"]


def ancestor_chain_inclusive(tag: str) -> list[str]:
    """
    Return the ancestors of a tag followed by the tag itself.

    >>> ancestor_chain_inclusive("Event/Category/Experimental stimulus")
    ['Event', 'Event/Category', 'Event/Category/Experimental stimulus']
    """
    tag = normalize_tag(tag)
    return strict_ancestors(tag) + [tag]


def is_tag_child(parent: str, candidate: str) -> bool:
    """Check if `candidate` sits anywhere below `parent`. A tag is not its own child."""
    if parent == candidate:
        return False
    return candidate.startswith(parent + "/")


def is_tag_immediate_child(parent: str, candidate: str) -> bool:
    """Check if `candidate` is exactly one level below `parent`."""
    if not is_tag_child(parent, candidate):
        return False
    return "/" not in candidate[len(parent) + 1:]


def is_ignored(tag: str, ignore_tags) -> bool:
    """Check if a tag is, or lies below, one of the ignored tags."""
    return any(tag == ignored or is_tag_child(ignored, tag) for ignored in ignore_tags)
