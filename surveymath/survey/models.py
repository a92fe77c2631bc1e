"""
Input models for the survey analytics core.

These describe the shapes supplied by the survey/response collaborators:
an ordered list of typed questions and a list of responses keyed by
question id. They perform type coercion only; domain validation belongs to
the collaborators that own surveys.
"""

from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, Field


class QuestionType(str, Enum):
    """Question type tag."""

    SINGLE = "single"
    MULTI = "multi"
    INT = "int"
    TEXT = "text"

    @property
    def is_choice(self) -> bool:
        return self in (QuestionType.SINGLE, QuestionType.MULTI)


class ChoiceOption(BaseModel):
    """Selectable option of a single or multi choice question."""

    id: int
    label: str = ""


class Question(BaseModel):
    """Survey question model."""

    id: int
    type: QuestionType
    text: str = ""
    position: int = 0
    required: bool = False
    options: List[ChoiceOption] = Field(default_factory=list)


class Answer(BaseModel):
    """
    Answer to one question.

    ``value`` holds an integer for numeric questions, a string for free text,
    a single option id for single choice and a list of option ids for
    multi choice.
    """

    question_id: int
    type: QuestionType
    value: Optional[Union[List[int], int, str]] = None

    def is_empty(self) -> bool:
        if self.value is None:
            return True
        if isinstance(self.value, str):
            return not self.value.strip()
        if isinstance(self.value, list):
            return len(self.value) == 0
        return False


class SurveyResponse(BaseModel):
    """One respondent's answers to a survey."""

    id: str
    survey_id: str = ""
    answers: List[Answer] = Field(default_factory=list)

    def answer_for(self, question_id: int) -> Optional[Answer]:
        """
        Get the answer given to a question.

        Args:
            question_id: Question id to look up

        Returns:
            The first answer for the question, or None if unanswered
        """
        for answer in self.answers:
            if answer.question_id == question_id:
                return answer
        return None

    def answers_by_question(self):
        """Map question id to answer, keeping the first answer per question."""
        result = {}
        for answer in self.answers:
            result.setdefault(answer.question_id, answer)
        return result


class Survey(BaseModel):
    """Survey model with the clustering settings chosen by its author."""

    id: str
    title: str = ""
    questions: List[Question] = Field(default_factory=list)
    k: Optional[int] = 3
    # Blank names use the configured analysis defaults
    init_method: str = ""
    distance: str = ""

    def ordered_questions(self) -> List[Question]:
        """Questions sorted by position; ties keep declaration order."""
        return sorted(self.questions, key=lambda q: q.position)
