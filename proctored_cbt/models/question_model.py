"""
models/question_model.py

Question / TestData models.
Pydantic v2. Loaded once per session, treated as immutable afterwards.
"""

from enum import Enum
from typing import Any, List, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator


class QuestionType(str, Enum):
    MCQ = "mcq"
    DESCRIPTIVE = "descriptive"


class QuestionOption(BaseModel):
    """A single MCQ option with an id that survives shuffling."""

    id: str = Field(..., min_length=1, description="Stable option id (e.g. opt_1)")
    text: str = Field(..., description="Option text shown to the user")


def _option_id(position: int) -> str:
    return f"opt_{position + 1}"


class Question(BaseModel):
    """
    A test question.

    Options may be given as plain strings; they receive stable ids
    (``opt_1`` .. ``opt_n``) at load time, so two options with identical
    text are still distinguishable. ``correct_answer`` may be given as an
    option id, option text or option index and is normalised to the id.
    """

    id: str = Field(..., min_length=1, description="Question id (unique within a test)")
    type: QuestionType = Field(default=QuestionType.MCQ, description="mcq | descriptive")
    prompt: str = Field(..., min_length=1, description="Question text")
    options: List[QuestionOption] = Field(
        default_factory=list,
        description="MCQ options (empty for descriptive questions)",
    )
    image: Optional[str] = Field(None, description="Optional image reference (URL or path)")
    points: float = Field(default=1.0, ge=0, description="Marks awarded for a correct answer")
    correct_answer: Optional[Union[str, int]] = Field(
        None,
        description="Correct option id, only exposed when review is permitted",
    )

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        # numeric ids from JSON payloads are accepted as strings
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("options", mode="before")
    @classmethod
    def assign_option_ids(cls, v: Any) -> Any:
        if v is None:
            return []
        options = []
        for position, item in enumerate(v):
            if isinstance(item, str):
                options.append({"id": _option_id(position), "text": item})
            else:
                options.append(item)
        return options

    @model_validator(mode="after")
    def validate_options(self) -> "Question":
        """
        MCQ questions need at least two options with unique ids; the correct
        answer, if present, must resolve to one of them.
        """
        if self.type == QuestionType.MCQ:
            if len(self.options) < 2:
                raise ValueError(f"MCQ question '{self.id}' needs at least 2 options.")
            ids = [o.id for o in self.options]
            if len(set(ids)) != len(ids):
                raise ValueError(f"Question '{self.id}' has duplicate option ids: {ids}")
            if self.correct_answer is not None and self.correct_answer != "":
                self.correct_answer = self._resolve_correct(self.correct_answer)
        elif self.options:
            raise ValueError(f"Descriptive question '{self.id}' cannot have options.")
        return self

    def _resolve_correct(self, value: Union[str, int]) -> str:
        if isinstance(value, int) and not isinstance(value, bool):
            if 0 <= value < len(self.options):
                return self.options[value].id
            raise ValueError(f"Correct answer index {value} is out of range for '{self.id}'.")
        for option in self.options:
            if option.id == value:
                return option.id
        for option in self.options:
            if option.text == value:
                return option.id
        raise ValueError(
            f"Correct answer ('{value}') is not one of the options of '{self.id}'."
        )

    @property
    def option_ids(self) -> List[str]:
        return [o.id for o in self.options]

    def public_dict(self, include_answer: bool = False) -> dict:
        """Serialisable view of the question; the correct answer is hidden by default."""
        data = self.model_dump(mode="json", exclude={"correct_answer"})
        if include_answer:
            data["correct_answer"] = self.correct_answer
        return data


class TestData(BaseModel):
    """Complete in-memory test definition handed to a session at construction."""

    __test__ = False  # not a pytest test class

    id: str = Field(..., min_length=1)
    title: str = Field(default="")
    duration: float = Field(default=60, ge=0, description="Time limit in minutes")
    questions: List[Question] = Field(default_factory=list)
    is_timed: bool = Field(default=True)
    allow_review: bool = Field(default=False)
    show_score: bool = Field(default=False)
    max_questions: Optional[int] = Field(default=None, ge=1)
    shuffle_questions: bool = Field(default=True)
    shuffle_options: bool = Field(default=True)

    @field_validator("questions")
    @classmethod
    def validate_unique_ids(cls, v: List[Question]) -> List[Question]:
        ids = [q.id for q in v]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ValueError(f"Duplicate question ids: {duplicates}")
        return v

    @property
    def duration_seconds(self) -> int:
        return int(round(self.duration * 60))
