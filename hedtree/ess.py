"""
ess.py - Read event code records out of ESS study containers.

ESS studies come in three layers:
- level 1: raw recordings, sessions and event codes
- level 2: a preprocessed study pointing back at its level 1 via `studyLevel1`
- level-derived: a further derived study pointing at its parent via
  `parentStudy` (`parentStudyObj` in 1.x exports)

Event codes (with their HED tags and instance counts) live on the level 1
study, so any container is first walked down to it.
"""

import json
import re
from enum import Enum
from pathlib import Path

# Fields carried over from each event code into a tag record
EVENT_CODE_FIELDS = ("code", "taskLabel", "label", "description", "tag", "numberOfInstances")

# 1.x containers misspell the key; both spellings are in circulation
EVENT_METHOD_KEYS = ("eventSpecificationMethod", "eventSpecificiationMethod")

LEVEL1_TYPES = {"essStudyLevel1", "ess:StudyLevel1"}

# Derived studies link to their parent under either name
PARENT_KEYS = ("parentStudyObj", "parentStudy")

# Report bundles embed the container as `study = {...};`
_JS_ASSIGNMENT = re.compile(r"^\s*(?:var\s+)?[\w$]+\s*=\s*(.*?);?\s*$", re.DOTALL)

# ...or as a JSONP call such as `receiveEssDocument({...});`
_JS_CALL = re.compile(r"^\s*[\w$.]+\s*\((.*)\)\s*;?\s*$", re.DOTALL)


class EssFormatError(ValueError):
    """The document does not look like an ESS study container."""


class StudyLevel(Enum):
    LEVEL1 = "level1"
    LEVEL2 = "level2"
    LEVEL_DERIVED = "level-derived"


def as_list(value) -> list:
    """Treat a one-or-many field as a list."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _is_level1(study: dict) -> bool:
    if any(key in study for key in EVENT_METHOD_KEYS):
        return True
    return study.get("type") in LEVEL1_TYPES


def _parent_link(study: dict):
    """Return the parent study of a derived study, or None if it has no parent link."""
    present = [key for key in PARENT_KEYS if key in study]
    if not present:
        return None
    for key in present:
        if isinstance(study[key], dict):
            return study[key]
    # `parentStudy` may hold only an id when the object sits in `parentStudyObj`
    raise EssFormatError(f"Study link '{present[0]}' must be an object")


def study_level_hierarchy(study: dict) -> list[tuple[StudyLevel, dict]]:
    """
    Walk a study container down to its level 1 study.

    Returns (level, study) pairs ordered from level 1 up to the given study.
    """
    hierarchy = []
    current = study

    while True:
        if not isinstance(current, dict):
            raise EssFormatError("Study link must be an object")

        parent = _parent_link(current)
        if parent is not None:
            hierarchy.insert(0, (StudyLevel.LEVEL_DERIVED, current))
            # Some exports wrap the level 1 study one level deeper
            if "level1StudyObj" in parent:
                parent = parent["level1StudyObj"]
            current = parent
        elif "studyLevel1" in current:
            hierarchy.insert(0, (StudyLevel.LEVEL2, current))
            current = current["studyLevel1"]
        elif _is_level1(current):
            hierarchy.insert(0, (StudyLevel.LEVEL1, current))
            return hierarchy
        else:
            raise EssFormatError("Could not find a level 1 study in the container")


def highest_level(hierarchy: list[tuple[StudyLevel, dict]]) -> StudyLevel:
    """Return the most derived level present in a study hierarchy."""
    if not hierarchy:
        raise EssFormatError("Empty study hierarchy")
    return hierarchy[-1][0]


def level1_study(study: dict) -> dict:
    return study_level_hierarchy(study)[0][1]


def event_code_records(study: dict) -> list[dict]:
    """
    Extract tag records from the level 1 event codes of a study.

    Handles both the `eventCodes` layout (one entry per code and task) and
    the older `eventCodesInfo` layout, where each code holds one or more
    `condition` entries with their own label, description and tag.
    """
    level1 = level1_study(study)
    records = []

    for event_code in as_list(level1.get("eventCodes")):
        if not isinstance(event_code, dict):
            raise EssFormatError("Event code entries must be objects")
        records.append({
            field: event_code[field] for field in EVENT_CODE_FIELDS if field in event_code
        })

    for event_code in as_list(level1.get("eventCodesInfo")):
        if not isinstance(event_code, dict):
            raise EssFormatError("Event code entries must be objects")
        for condition in as_list(event_code.get("condition")):
            if not isinstance(condition, dict):
                raise EssFormatError(f"Event code {event_code.get('code')}: condition must be an object")
            record = {"code": event_code.get("code")}
            for field in ("taskLabel", "label", "description", "tag"):
                if field in condition:
                    record[field] = condition[field]
            if "numberOfInstances" in event_code:
                record["numberOfInstances"] = event_code["numberOfInstances"]
            records.append(record)

    return records


def is_study_container(data) -> bool:
    """Check if a loaded JSON document is an ESS study container."""
    if not isinstance(data, dict):
        return False
    if "studyLevel1" in data or any(key in data for key in PARENT_KEYS):
        return True
    return _is_level1(data)


def parse_study_text(text: str):
    """
    Parse container text.

    Accepts plain JSON, a `study = {...};` assignment or a single-call JSONP
    wrapper such as `receiveEssDocument({...});`.
    """
    if not text.lstrip().startswith(("{", "[")):
        match = _JS_CALL.match(text) or _JS_ASSIGNMENT.match(text)
        if match:
            text = match.group(1)
    return json.loads(text)


def load_document(path):
    """Load a container or record document from a .json or report .js file."""
    return parse_study_text(Path(path).read_text(encoding="utf-8"))
