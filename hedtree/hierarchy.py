"""
hierarchy.py - Arrange tag counts into a treemap-ready hierarchy.

Output nodes follow the shape D3 expects for `d3.hierarchy`:

    {"name": "Event (15)", "size": 15, "children": [...]}

Leaves carry no `children` key at all. The root is a synthetic "HED" node
without a size.
"""

import statistics
from collections import defaultdict

from hedtree.counts import count_tags
from hedtree.tags import DEFAULT_IGNORE_TAGS, strict_ancestors

ROOT_NAME = "HED"

# Switch to log sizes when the largest count exceeds the median by this factor
LOG_SCALE_RATIO = 10


def median(values) -> float:
    """Median of the values; the mean of the two middle values for even lengths."""
    return statistics.median(values)


def should_use_log_count(tag_counts: dict[str, dict]) -> bool:
    """Check if one dominant tag would swamp a linear treemap."""
    counts = [entry["count"] for entry in tag_counts.values()]
    if not counts:
        return False
    return max(counts) > LOG_SCALE_RATIO * median(counts)


def format_count(value) -> str:
    """Format a count as a plain number, without a trailing `.0` or separators."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def index_children(tag_counts: dict[str, dict]) -> tuple[list[str], dict[str, list[str]]]:
    """
    Find the topmost tags and the immediate children of every tag.

    A tag is topmost when none of its ancestors is in the map. A tag whose
    direct parent is missing but which has a higher ancestor in the map is
    neither topmost nor anyone's immediate child.

    Returns:
        tuple of (sorted topmost tags, parent -> sorted immediate children)
    """
    topmost = []
    children_by_parent = defaultdict(list)

    for tag in tag_counts:
        ancestors = strict_ancestors(tag)
        if not any(ancestor in tag_counts for ancestor in ancestors):
            topmost.append(tag)
        elif ancestors[-1] in tag_counts:
            children_by_parent[ancestors[-1]].append(tag)

    for children in children_by_parent.values():
        children.sort()

    return sorted(topmost), dict(children_by_parent)


def build_node(
    tag: str,
    tag_counts: dict[str, dict],
    use_log_count: bool,
    children_by_parent: dict[str, list[str]],
) -> dict:
    """Recursively build the hierarchy node for one tag."""
    entry = tag_counts[tag]
    node = {
        "name": f"{tag} ({format_count(entry['count'])})",
        "size": entry["logCount"] if use_log_count else entry["count"],
    }

    children = children_by_parent.get(tag)
    if children:
        node["children"] = [
            build_node(child, tag_counts, use_log_count, children_by_parent)
            for child in children
        ]

    return node


def convert_to_hierarchy(tag_counts: dict[str, dict], use_log_count: bool | None = None) -> dict:
    """
    Convert a tag count map into a rooted hierarchy.

    When `use_log_count` is None the scale is picked once for the whole
    tree by should_use_log_count().
    """
    if use_log_count is None:
        use_log_count = should_use_log_count(tag_counts)

    topmost, children_by_parent = index_children(tag_counts)

    return {
        "name": ROOT_NAME,
        "children": [
            build_node(tag, tag_counts, use_log_count, children_by_parent)
            for tag in topmost
        ],
    }


def build_hed_hierarchy(
    records,
    ignore_tags=DEFAULT_IGNORE_TAGS,
    use_log_count: bool | None = None,
) -> dict:
    """Count tags in a batch of records and arrange them into a hierarchy."""
    return convert_to_hierarchy(count_tags(records, ignore_tags), use_log_count)


def collect_nodes(tree: dict) -> list[dict]:
    """Extract a flat list of every node below the root."""
    nodes = []

    def walk(node: dict):
        for child in node.get("children", []):
            nodes.append(child)
            walk(child)

    walk(tree)
    return nodes
