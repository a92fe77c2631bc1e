"""
Survey input models.

Surveys, questions and responses as supplied to the analytics core.
"""

from surveymath.survey.models import (
    QuestionType, ChoiceOption, Question, Answer, SurveyResponse, Survey
)
