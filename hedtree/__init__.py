"""Build treemap-ready hierarchies from HED tag counts in ESS studies."""

from hedtree.counts import InvalidRecordError, count_tags
from hedtree.ess import EssFormatError, event_code_records
from hedtree.hierarchy import build_hed_hierarchy, convert_to_hierarchy
from hedtree.summary import study_summary

__all__ = [
    "EssFormatError",
    "InvalidRecordError",
    "build_hed_hierarchy",
    "convert_to_hierarchy",
    "count_tags",
    "event_code_records",
    "study_summary",
]
