"""
Project stages and their progress percentages.

The mapping is stepwise: a progress value belongs to the last stage whose
threshold it has reached, so 59% is still "Development - Initial".
"""
from typing import List, Tuple

from portal.core.errors import InvalidInputError

# Ordered by threshold
PROJECT_STAGES: List[Tuple[str, int]] = [
    ("Not Started", 0),
    ("Requirements Gathering", 10),
    ("Design Phase", 25),
    ("Development - Initial", 40),
    ("Development - Advanced", 60),
    ("Testing", 75),
    ("Client Review", 85),
    ("Final Adjustments", 95),
    ("Completed", 100),
]

_PROGRESS_BY_STAGE = dict(PROJECT_STAGES)


def stage_for_progress(progress: int) -> str:
    if isinstance(progress, bool) or not isinstance(progress, int):
        raise InvalidInputError(f"Progress must be an integer, got {progress!r}")
    if not 0 <= progress <= 100:
        raise InvalidInputError(f"Progress must be between 0 and 100, got {progress}")
    for name, threshold in reversed(PROJECT_STAGES):
        if progress >= threshold:
            return name
    return PROJECT_STAGES[0][0]


def progress_for_stage(name: str) -> int:
    try:
        return _PROGRESS_BY_STAGE[name]
    except KeyError:
        raise InvalidInputError(f"Unknown project stage: {name!r}")
