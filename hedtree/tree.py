"""
tree.py - Generate HED tag hierarchy JSON with instance counts.

Usage:
    hed-tree <input.json> [<input.json> ...] [--output <hedcount.json>]

Inputs are ESS study containers or plain record files (a JSON array of
{"tag": ..., "numberOfInstances": ...} objects). Outputs a JSON tree where
every HED tag is nested under its parent tag and sized by how many events
carry it, ready for a treemap.
"""

import argparse
import json
import sys
from pathlib import Path

from hedtree.counts import InvalidRecordError, count_tags, is_countable, parse_records
from hedtree.ess import EssFormatError, event_code_records, is_study_container, load_document
from hedtree.hierarchy import convert_to_hierarchy, should_use_log_count
from hedtree.summary import study_summary
from hedtree.tags import DEFAULT_IGNORE_TAGS


def load_input_file(file_path: Path) -> tuple[dict | None, list[str]]:
    """
    Load tag records from a single input file.

    Returns:
        tuple of ({"records": [...], "study": summary or None} or None,
        list of error messages)
    """
    errors = []

    try:
        data = load_document(file_path)
    except OSError as e:
        errors.append(f"Could not read file: {e}")
        return None, errors
    except json.JSONDecodeError as e:
        errors.append(f"Invalid JSON: {e}")
        return None, errors

    try:
        if is_study_container(data):
            loaded = {"records": event_code_records(data), "study": study_summary(data)}
        else:
            loaded = {"records": parse_records(data), "study": None}
    except (InvalidRecordError, EssFormatError) as e:
        errors.append(str(e))
        return None, errors

    return loaded, []


def build_output(
    records: list[dict],
    sources: list[str],
    ignore_tags=DEFAULT_IGNORE_TAGS,
    use_log_count: bool | None = None,
    studies: list[dict] | None = None,
) -> dict:
    """Count tags and wrap the hierarchy with summary metadata."""
    tag_counts = count_tags(records, ignore_tags)
    if use_log_count is None:
        use_log_count = should_use_log_count(tag_counts)

    return {
        "sources": sources,
        "studies": studies or [],
        "tree": convert_to_hierarchy(tag_counts, use_log_count),
        "tagCounts": tag_counts,
        "totalRecords": len(records),
        "countedRecords": sum(1 for r in records if is_countable(r.get("numberOfInstances"))),
        "useLogCount": use_log_count,
    }


def print_summary(output: dict):
    """Print study figures, topmost tags and the scale decision to stderr."""
    for study in output["studies"]:
        print(
            f"\nStudy: {study['title']} ({study['level']}), "
            f"{study['numberOfSessions']} sessions, {study['numberOfSubjects']} subjects",
            file=sys.stderr,
        )
        if study["numberOfChannels"]:
            print(f"  EEG channels: {study['numberOfChannels']}", file=sys.stderr)

    print(
        f"\nRecords counted: {output['countedRecords']} of {output['totalRecords']}",
        file=sys.stderr,
    )
    print(f"Distinct tags: {len(output['tagCounts'])}", file=sys.stderr)

    print("\nTopmost tags:", file=sys.stderr)
    topmost = output["tree"]["children"]
    if topmost:
        for node in topmost:
            print(f"  {node['name']}", file=sys.stderr)
    else:
        print("  (none)", file=sys.stderr)

    scale = "log" if output["useLogCount"] else "linear"
    print(f"\nTreemap sizes use {scale} counts", file=sys.stderr)


def main():
    parser = argparse.ArgumentParser(
        description="Generate HED tag hierarchy JSON with instance counts"
    )
    parser.add_argument(
        "inputs",
        nargs="+",
        type=str,
        help="ESS study container or tag record JSON files",
    )
    parser.add_argument(
        "--output", "-o",
        type=str,
        help="Output JSON file (default: stdout)",
    )
    parser.add_argument(
        "--ignore",
        action="append",
        default=[],
        metavar="TAG",
        help="Tag whose branch is not counted (repeatable)",
    )
    parser.add_argument(
        "--no-default-ignores",
        action="store_true",
        help=f"Count {', '.join(sorted(DEFAULT_IGNORE_TAGS))} as well",
    )
    scale = parser.add_mutually_exclusive_group()
    scale.add_argument(
        "--log-scale",
        dest="use_log_count",
        action="store_const",
        const=True,
        help="Size nodes by summed log counts",
    )
    scale.add_argument(
        "--linear-scale",
        dest="use_log_count",
        action="store_const",
        const=False,
        help="Size nodes by raw counts",
    )
    parser.add_argument(
        "--tree-only",
        action="store_true",
        help="Write only the hierarchy, without counts and metadata",
    )

    args = parser.parse_args()

    ignore_tags = set(args.ignore)
    if not args.no_default_ignores:
        ignore_tags |= DEFAULT_IGNORE_TAGS

    records = []
    sources = []
    studies = []
    invalid = {}
    for input_path in args.inputs:
        file_path = Path(input_path)
        if not file_path.is_file():
            invalid[input_path] = [f"Path does not exist: {file_path}"]
            continue

        loaded, errors = load_input_file(file_path)
        if errors:
            invalid[input_path] = errors
            continue

        print(f"Loaded {len(loaded['records'])} records from {input_path}", file=sys.stderr)
        records.extend(loaded["records"])
        if loaded["study"] is not None:
            studies.append(loaded["study"])
        sources.append(str(file_path.resolve()))

    if invalid:
        for filename, errors in invalid.items():
            print(f"Error: {filename}:", file=sys.stderr)
            for error in errors:
                print(f"    - {error}", file=sys.stderr)
        sys.exit(1)

    try:
        output = build_output(records, sources, ignore_tags, args.use_log_count, studies)
    except InvalidRecordError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print_summary(output)

    json_output = json.dumps(output["tree"] if args.tree_only else output, indent=2)

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(json_output, encoding="utf-8")
        print(f"\nTree written to {args.output}", file=sys.stderr)
    else:
        print(json_output)


if __name__ == "__main__":
    main()
