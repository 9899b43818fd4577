"""Progress tracking models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


def _to_camel(name: str) -> str:
    """Convert snake_case to camelCase for JSON serialization."""
    parts = name.split("_")
    return parts[0] + "".join(w.title() for w in parts[1:])


class CaseCategory(str, Enum):
    LOW_BACK_PAIN = "low-back-pain"
    HEADACHE = "headache"
    CHEST_PAIN = "chest-pain"
    ABDOMINAL_PAIN = "abdominal-pain"
    EXTREMITY_TRAUMA = "extremity-trauma"


class SpecialtyTrack(str, Enum):
    EM = "em"
    IM = "im"
    FM = "fm"
    SURGERY = "surgery"
    PEDS = "peds"


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=_to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class CategoryStats(_CamelModel):
    """Attempted/correct counts for one category or specialty track."""

    attempted: int = 0
    correct: int = 0
    accuracy: int = 0


class ProgressSnapshot(_CamelModel):
    """Per-user rolling statistics."""

    cases_completed: int = 0
    total_correct: int = 0
    accuracy: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    total_time_spent: int = 0
    category_progress: dict[str, CategoryStats] = {}
    specialty_progress: dict[str, CategoryStats] = {}


class SubmissionResult(_CamelModel):
    """Outcome of one case attempt."""

    model_config = ConfigDict(
        alias_generator=_to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )

    case_id: str
    case_category: CaseCategory
    specialty_tags: list[SpecialtyTrack] = []
    is_correct: bool
    score: float = Field(default=0, ge=0, le=100, allow_inf_nan=False)
    time_spent: int = Field(default=0, ge=0)
    hints_used: int = Field(default=0, ge=0)


class MilestoneSet(_CamelModel):
    """Level-triggered achievement flags for a snapshot."""

    first_case: bool = False
    perfect_score: bool = False
    streak5: bool = False
    streak10: bool = False
    category_complete: list[str] = []


class SubmissionOutcome(_CamelModel):
    """Snapshot after a submission plus the milestones it satisfies."""

    progress: ProgressSnapshot
    milestones: MilestoneSet
