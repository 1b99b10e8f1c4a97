import uuid
from datetime import datetime
from enum import Enum
from typing import List, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


# --- Corpus ---
class Item(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    prompt: str
    reading: str = ""
    meaning: str = ""


class ItemSet(BaseModel):
    level: str
    name: str
    items: List[Item] = Field(default_factory=list)

    @property
    def identity(self) -> str:
        return make_set_id(self.level, self.name)


def make_set_id(level: str, name: str) -> str:
    return f"{level}_{name}"


# --- Quiz modes ---
class QuizMode(str, Enum):
    MULTIPLE_CHOICE = "Multiple Choice"
    TEXT_INPUT = "Text Input"

    @property
    def description(self) -> str:
        if self is QuizMode.MULTIPLE_CHOICE:
            return "Pick the correct answer from several options."
        return "Type the correct answer (the reading or the meaning)."

    @property
    def slug(self) -> str:
        return self.value.lower().replace(" ", "_")

    @classmethod
    def from_slug(cls, slug: str) -> "QuizMode":
        for mode in cls:
            if mode.slug == slug:
                return mode
        raise ValueError(f"Unknown quiz mode: {slug}")


def make_session_id(set_id: str, mode: QuizMode) -> str:
    return f"quiz_{set_id}_{mode.slug}"


# --- Persisted state ---
class Session(BaseModel):
    """Progress of one (set, mode) pair.

    Stores hand out fresh copies on every change; an instance is never
    mutated after it has been returned.
    """

    session_id: str
    set_id: str
    score: int = Field(default=0, ge=0)
    current_index: int = Field(default=0, ge=0)
    total_questions: int = Field(default=0, ge=0)
    correct_count: int = Field(default=0, ge=0)
    incorrect_count: int = Field(default=0, ge=0)
    answered_item_ids: List[str] = Field(default_factory=list)
    has_order_saved: bool = False
    last_accessed: datetime = Field(default_factory=datetime.now)

    @model_validator(mode="after")
    def _check_bounds(self) -> "Session":
        if self.current_index > self.total_questions:
            raise ValueError("current_index exceeds total_questions")
        if self.correct_count + self.incorrect_count > self.total_questions:
            raise ValueError("more answers recorded than questions")
        return self


class OrderRecord(BaseModel):
    session_id: str
    ordered_item_ids: List[str]


# --- Questions ---
class MultipleChoiceType(str, Enum):
    ITEM_TO_MEANING = "item_to_meaning"
    MEANING_TO_ITEM = "meaning_to_item"
    ITEM_TO_READING = "item_to_reading"


class TextInputType(str, Enum):
    ITEM_TO_READING_INPUT = "item_to_reading_input"
    ITEM_TO_MEANING_INPUT = "item_to_meaning_input"


class MultipleChoiceQuestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    source_item: Item
    prompt_text: str
    options: List[str]
    correct_option_index: int
    question_type: MultipleChoiceType

    @property
    def source_item_id(self) -> str:
        return self.source_item.id

    @property
    def correct_answer_text(self) -> str:
        return self.options[self.correct_option_index]


class TextInputQuestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    source_item: Item
    prompt_text: str
    correct_answer_text: str
    question_type: TextInputType

    @property
    def source_item_id(self) -> str:
        return self.source_item.id


Question = Union[MultipleChoiceQuestion, TextInputQuestion]
