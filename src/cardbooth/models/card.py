"""Generated content models."""

from pydantic import BaseModel, ConfigDict, Field

# Field limits applied to model output before validation
NAME_MAX_LENGTH = 12
CLASS_MAX_LENGTH = 15
SKILL_MAX_LENGTH = 20
DESCRIPTION_MAX_LENGTH = 60
SESSION_ID_MAX_LENGTH = 64
QUESTION_MAX_LENGTH = 30

STAT_MIN = 1
STAT_MAX = 100
STAT_KEYS = ("sense", "logic", "luck", "charm", "vibe")

MIN_QUESTIONS = 4
MAX_QUESTIONS = 5


class Question(BaseModel):
    """A single question shown on the answer form."""

    id: int = Field(ge=1)
    text: str = Field(min_length=1, max_length=QUESTION_MAX_LENGTH)


class GeneratedQuestionSet(BaseModel):
    """A batch of questions produced by the model."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId", min_length=1, max_length=SESSION_ID_MAX_LENGTH)
    questions: list[Question] = Field(min_length=MIN_QUESTIONS, max_length=MAX_QUESTIONS)


class CardStats(BaseModel):
    """The five fixed card stats."""

    sense: int = Field(ge=STAT_MIN, le=STAT_MAX)
    logic: int = Field(ge=STAT_MIN, le=STAT_MAX)
    luck: int = Field(ge=STAT_MIN, le=STAT_MAX)
    charm: int = Field(ge=STAT_MIN, le=STAT_MAX)
    vibe: int = Field(ge=STAT_MIN, le=STAT_MAX)


class GeneratedCardRecord(BaseModel):
    """Card content produced by the model. Serializes with the ``class`` key."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1, max_length=NAME_MAX_LENGTH)
    card_class: str = Field(alias="class", min_length=1, max_length=CLASS_MAX_LENGTH)
    stats: CardStats
    skill: str = Field(min_length=1, max_length=SKILL_MAX_LENGTH)
    description: str = Field(min_length=1, max_length=DESCRIPTION_MAX_LENGTH)
