"""
summary.py - Summarize an ESS study for the report header.

Collects the figures shown above the report grids: how many sessions and
subjects the study has, which modalities and EEG channel counts its
recordings use, who ran it and where it was published. Level 2 studies add
data quality and interpolated channel counts per file.

Text fields follow the report's "item (count recordings)" format, e.g.
`256 (15 recordings), 64 (2 recordings)`.
"""

from collections import Counter

from hedtree.ess import (
    EVENT_METHOD_KEYS,
    StudyLevel,
    as_list,
    highest_level,
    study_level_hierarchy,
)

# Placeholder values ESS tools write for missing fields
NOT_AVAILABLE = {"", "NA", "-"}

DOI_RESOLVER = "http://dx.doi.org/"


def is_available(value) -> bool:
    """Check if a field holds a real value rather than a placeholder."""
    if value is None:
        return False
    return str(value).strip() not in NOT_AVAILABLE


def _first(study: dict, *keys):
    """Value of the first key present; 1.x and 2.x containers name fields differently."""
    for key in keys:
        if key in study:
            return study[key]
    return None


def count_values(values) -> list[tuple]:
    """Count repeated values, ordered by their text."""
    counts = Counter(values)
    return sorted(counts.items(), key=lambda item: str(item[0]))


def text_from_items_and_counts(items_and_counts, quantity: str = "") -> str:
    """Format (item, count) pairs as `item (count quantity), ...`."""
    return ", ".join(f"{item} ({count}{quantity})" for item, count in items_and_counts)


def _sessions(study: dict) -> list:
    return as_list(_first(study, "sessions", "sessionTaskInfo"))


def _subjects(session: dict) -> list:
    return as_list(_first(session, "subjects", "subject"))


def count_subjects(study: dict) -> int:
    """
    Count distinct subjects by lab id.

    Subjects without a lab id (NA or -) cannot be matched across sessions,
    so each one counts as a new subject.
    """
    lab_ids = set()
    anonymous = 0
    for session in _sessions(study):
        for subject in _subjects(session):
            lab_id = subject.get("labId")
            if is_available(lab_id):
                lab_ids.add(str(lab_id))
            else:
                anonymous += 1
    return len(lab_ids) + anonymous


def subject_groups(study: dict) -> list[str]:
    groups = []
    for session in _sessions(study):
        for subject in _subjects(session):
            group = subject.get("group")
            if is_available(group) and group not in groups:
                groups.append(group)
    return groups


def _channel_count(modality: dict) -> int | None:
    try:
        return 1 + int(modality["endChannel"]) - int(modality["startChannel"])
    except (KeyError, TypeError, ValueError):
        return None


def recording_statistics(study: dict) -> dict:
    """
    Tally modalities and EEG channel layouts over all data recordings.

    Each recording is matched to its recording parameter set by label.
    """
    parameter_sets = {}
    for parameter_set in as_list(_first(study, "recordingParameterSets", "recordingParameterSet")):
        parameter_sets[parameter_set.get("recordingParameterSetLabel")] = as_list(
            _first(parameter_set, "modalities", "modality")
        )

    eeg_channels = []
    modalities = []
    location_types = []
    recordings = 0

    for session in _sessions(study):
        for recording in as_list(_first(session, "dataRecordings", "dataRecording")):
            recordings += 1
            recording_modalities = parameter_sets.get(recording.get("recordingParameterSetLabel"), [])

            types = []
            for modality in recording_modalities:
                modality_type = modality.get("type")
                if modality_type not in types:
                    types.append(modality_type)
                if str(modality_type).upper() == "EEG":
                    channels = _channel_count(modality)
                    if channels is not None:
                        eeg_channels.append(channels)
                    location_types.append(modality.get("channelLocationType"))
            modalities.extend(types)

    return {
        "numberOfDataRecordings": recordings,
        "numberOfChannels": text_from_items_and_counts(count_values(eeg_channels), " recordings"),
        "modalities": text_from_items_and_counts(count_values(modalities), " recordings"),
        "channelLocationTypes": text_from_items_and_counts(count_values(location_types), " recordings"),
    }


def publications(study: dict) -> list[dict]:
    """Citations with a link, falling back to the DOI resolver."""
    result = []
    for publication in as_list(_first(study, "publications", "publicationsInfo")):
        citation = publication.get("citation")
        doi = publication.get("DOI")
        if not is_available(citation) and not is_available(doi):
            continue

        text = citation if is_available(citation) else ""
        link = publication.get("link") if is_available(publication.get("link")) else ""
        if is_available(doi):
            text = f"{text}, DOI: {doi}" if text else f"DOI: {doi}"
            if not link:
                link = DOI_RESOLVER + doi
        result.append({"text": text, "link": link})
    return result


def experimenters(study: dict) -> list[str]:
    result = []
    for experimenter in as_list(_first(study, "experimenters", "experimentersInfo")):
        name = experimenter.get("name")
        if not is_available(name):
            continue
        role = experimenter.get("role")
        result.append(f"{role}: {name}" if is_available(role) else name)
    return result


def funding_organizations(study: dict) -> str:
    entries = []
    for funding in as_list(study.get("projectFunding")):
        organization = funding.get("organization")
        if not is_available(organization):
            continue
        grant = funding.get("grantId")
        entries.append(f"{organization} ({grant})" if is_available(grant) else organization)
    return ", ".join(entries)


def _interpolated_channel_count(value) -> int:
    if isinstance(value, str):
        return len([c for c in value.replace(",", " ").split() if is_available(c)])
    return len(as_list(value))


def level2_statistics(level2: dict) -> dict:
    """Data quality and interpolated channels of the level 2 files."""
    files = as_list(level2.get("studyLevel2Files"))

    # Quality labels keep their first-appearance order
    quality = Counter(f.get("dataQuality") for f in files)
    data_quality = ", ".join(f"{count} ({label})" for label, count in quality.items())

    return {
        "numberOfFiles": len(files),
        "dataQuality": data_quality,
        "interpolatedChannels": [
            {
                "dataRecordingId": f.get("dataRecordingId"),
                "studyLevel2FileName": f.get("studyLevel2FileName"),
                "numberOfInterpolatedChannels": _interpolated_channel_count(f.get("interpolatedChannels")),
            }
            for f in files
        ],
    }


def study_summary(study: dict) -> dict:
    """
    Summarize a study container of any level.

    Study-wide figures come from the level 1 study; the title comes from the
    most derived level, as that is the study the container describes.
    """
    hierarchy = study_level_hierarchy(study)
    level1 = hierarchy[0][1]
    top = hierarchy[-1][1]
    info = _first(level1, "summary", "summaryInfo") or {}
    license_info = info.get("license") or {}

    summary = {
        "title": top.get("title", level1.get("title")),
        "level": highest_level(hierarchy).value,
        "levels": [level.value for level, _ in hierarchy],
        "shortDescription": _first(level1, "shortDescription", "studyShortDescription"),
        "eventSpecificationMethod": _first(level1, *EVENT_METHOD_KEYS),
        "numberOfSessions": len(_sessions(level1)),
        "numberOfSubjects": count_subjects(level1),
        "subjectGroups": subject_groups(level1),
        **recording_statistics(level1),
        "totalSize": info.get("totalSize"),
        "licenseType": license_info.get("type"),
        "fundingOrganization": funding_organizations(level1),
        "publications": publications(level1),
        "experimenters": experimenters(level1),
    }

    for level, level_study in hierarchy:
        if level is StudyLevel.LEVEL2:
            summary["level2"] = level2_statistics(level_study)

    return summary
