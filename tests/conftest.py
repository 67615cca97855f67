"""Shared fixtures for the hedtree test suite."""
import json
import sys
from pathlib import Path

import pytest

# Add project root to path so imports work without installing
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


# ── Event codes from an RSVP study, as stored in an ESS level 1 container ──

RSVP_EVENT_CODES = [
    {
        "code": "1",
        "taskLabel": "main",
        "label": "non-target",
        "description": "satellite image of London without the white airplane target",
        "tag": "Event/Label/Non-target image, Event/Description/A non-target image is displayed for about 8 milliseconds, "
               "Event/Category/Experimental stimulus, (Item/Natural scene/Arial/Satellite, "
               "Participant/Effect/Cognitive/Expected/Non-target, Sensory presentation/Visual/Rendering type/Screen/2D), "
               "Attribute/Onset",
        "numberOfInstances": 333917,
    },
    {
        "code": "2",
        "taskLabel": "main",
        "label": "target frames",
        "description": "satellite image of London with the white airplane target",
        "tag": "Event/Label/Target image, Event/Description/A white airplane as the RSVP target superimposed on a satellite image is displayed., "
               "Event/Category/Experimental stimulus, (Item/Object/Vehicle/Aircraft/Airplane, Participant/Effect/Cognitive/Target, "
               "Sensory presentation/Visual/Rendering type/Screen/2D), (Item/Natural scene/Arial/Satellite, "
               "Sensory presentation/Visual/Rendering type/Screen/2D)",
        "numberOfInstances": 3976,
    },
    {
        "code": "4",
        "taskLabel": "main",
        "label": "no targets response",
        "description": "no targets response indicated by pressing left button using dominant hand",
        "tag": "Event/Label/NoTrgt BttnPress,  Event/Description/No-targets response indicated by pressing left button using dominant hand , "
               "Event/Category/Participant response, (Participant ~ Action/Button press/Keyboard ~ "
               "Participant/Effect/Body part/Arm/Hand/Finger, Attribute/Object side/Left)",
        "numberOfInstances": 5010,
    },
    {
        "code": "6",
        "taskLabel": "main",
        "label": "block start",
        "description": "trials are organized into blocks, this marks the beginning of a new block of trials",
        "tag": "Event\\Label\\Block start, Event\\Description\\Trials are organized into blocks, "
               "Event\\Category\\Experiment control\\Sequence\\Block, Attribute\\Onset",
        "numberOfInstances": 1224,
    },
    {
        "code": "64",
        "taskLabel": "main",
        "label": "'wrong' feedback",
        "description": "visual feedback 'wrong' indicating that the response was incorrect",
        "tag": "Event/Label/Feedback incorrect, Event/Description/Visual feedback with the word Wrong, "
               "Event/Category/Experimental stimulus, Attribute/Onset, Item/Symbolic/Character/Letter, "
               "Participant/Effect/Cognitive/Feedback/Incorrect",
        "numberOfInstances": 259,
    },
]

RSVP_TOTAL_INSTANCES = 333917 + 3976 + 5010 + 1224 + 259


def make_level1_study(event_codes=None):
    """A minimal ESS level 1 container."""
    return {
        "title": "RSVP study",
        "type": "essStudyLevel1",
        "eventSpecificiationMethod": "Codes",
        "eventCodes": RSVP_EVENT_CODES if event_codes is None else event_codes,
        "sessions": [],
    }


@pytest.fixture
def rsvp_records():
    return [dict(record) for record in RSVP_EVENT_CODES]


@pytest.fixture
def level1_study():
    return make_level1_study()


@pytest.fixture
def level2_study(level1_study):
    return {"title": "RSVP level 2", "studyLevel1": level1_study}


@pytest.fixture
def derived_study(level2_study):
    return {"title": "RSVP derived", "parentStudyObj": level2_study}


@pytest.fixture
def ess2_level1_study():
    """A level 1 container as written by ESS 2.x tools."""
    return {
        "title": "RSVP study",
        "type": "ess:StudyLevel1",
        "eventSpecificationMethod": "Tags",
        "eventCodes": [{"code": "1", "tag": "A/B", "numberOfInstances": 2}],
    }


@pytest.fixture
def ess2_derived_study(ess2_level1_study):
    level2 = {"type": "ess:StudyLevel2", "studyLevel1": ess2_level1_study}
    return {"type": "ess:StudyLevelDerived", "parentStudy": level2}


@pytest.fixture
def study_file(tmp_path, level1_study):
    """Write a level 1 container to disk."""
    path = tmp_path / "study_description.json"
    path.write_text(json.dumps(level1_study, indent=2))
    return path


@pytest.fixture
def records_file(tmp_path):
    """Write a plain record list to disk."""
    path = tmp_path / "records.json"
    path.write_text(json.dumps([
        {"tag": "A/B", "numberOfInstances": 10},
        {"tag": "A/C", "numberOfInstances": 5},
    ]))
    return path
