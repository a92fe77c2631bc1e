"""
Feature encoding for survey responses.

The encoder learns a fixed column layout from a survey and a training set of
responses, then turns responses into a dense numeric matrix with every value
in [0, 1]:

- single and multi choice questions: one indicator column per declared option
  (one-hot / multi-hot)
- numeric questions: one column, min-max normalized against the range seen
  at fit time
- free text questions: one column per vocabulary word, holding the word's
  relative frequency among the vocabulary words of the answer

Columns are grouped by question position; inside a question they follow the
declared option order or the sorted vocabulary.
"""

import logging
import re
from numbers import Real
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from surveymath.exceptions import NotFittedError, require_not_none
from surveymath.math.named_matrix import NamedMatrix
from surveymath.survey.models import Answer, Question, QuestionType, Survey, SurveyResponse

# Set up logging
logger = logging.getLogger(__name__)

# Anything that is not a letter or a digit separates tokens
_NON_ALNUM = re.compile(r'[\W_]+')

MIN_TOKEN_LENGTH = 3


def tokenize(text: Optional[str]) -> List[str]:
    """
    Split free text into vocabulary tokens.

    Lowercases the text, treats every non letter/digit character as a
    separator and drops tokens shorter than three characters.

    Args:
        text: Raw answer text

    Returns:
        List of tokens in order of appearance
    """
    if not text:
        return []
    clean = _NON_ALNUM.sub(' ', text.lower())
    return [token for token in clean.split() if len(token) >= MIN_TOKEN_LENGTH]


def _is_number(value) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


class FeatureEncoder:
    """
    Encodes survey responses into feature vectors.

    The encoder must be fit before it can transform. Calling ``fit`` again
    discards everything learned before. One instance must not be shared
    between threads.
    """

    def __init__(self):
        self._reset_state()

    def _reset_state(self) -> None:
        self._questions: List[Question] = []
        self._feature_names: List[str] = []
        self._slices: Dict[int, slice] = {}
        self._option_index: Dict[int, Dict[int, int]] = {}
        self._numeric_index: Dict[int, int] = {}
        self._numeric_domains: Dict[int, Tuple[float, float]] = {}
        self._text_vocab: Dict[int, Dict[str, int]] = {}
        self._text_start: Dict[int, int] = {}
        self._fitted = False

    @property
    def is_fitted(self) -> bool:
        return self._fitted

    @property
    def feature_names(self) -> Tuple[str, ...]:
        """Ordered names of the encoded columns."""
        return tuple(self._feature_names)

    @property
    def n_features(self) -> int:
        return len(self._feature_names)

    def question_slices(self) -> Dict[int, slice]:
        """Map each question id to the slice of columns it owns."""
        return dict(self._slices)

    def numeric_domain(self, question_id: int) -> Tuple[float, float]:
        """The [min, max] learned for a numeric question."""
        return self._numeric_domains[question_id]

    def vocabulary(self, question_id: int) -> List[str]:
        """The sorted vocabulary learned for a text question."""
        vocab = self._text_vocab[question_id]
        return sorted(vocab, key=vocab.get)

    def fit(self,
            questions: Union[Survey, Sequence[Question]],
            responses: Sequence[SurveyResponse]) -> 'FeatureEncoder':
        """
        Learn the column layout and normalization parameters.

        Args:
            questions: A survey, or its questions
            responses: Training responses used for numeric ranges and text vocabularies

        Returns:
            The encoder itself
        """
        require_not_none(questions, "questions")
        require_not_none(responses, "responses")
        self._reset_state()

        if isinstance(questions, Survey):
            ordered = questions.ordered_questions()
        else:
            ordered = sorted(questions, key=lambda q: q.position)

        for question in ordered:
            start = len(self._feature_names)

            if question.type.is_choice:
                self._fit_choice(question)
            elif question.type is QuestionType.INT:
                self._fit_numeric(question, responses)
            elif question.type is QuestionType.TEXT:
                self._fit_text(question, responses)

            self._slices[question.id] = slice(start, len(self._feature_names))

        self._questions = list(ordered)
        self._fitted = True

        logger.info(f"Encoder fitted on {len(responses)} responses: "
                    f"{len(self._questions)} questions, {self.n_features} features")
        return self

    def transform(self, responses: Sequence[SurveyResponse]) -> np.ndarray:
        """
        Encode responses with the layout learned at fit time.

        Args:
            responses: Responses to encode

        Returns:
            Matrix of shape (len(responses), n_features)
        """
        if not self._fitted:
            raise NotFittedError("Encoder has not been fitted. Call fit() first.")
        require_not_none(responses, "responses")

        X = np.zeros((len(responses), self.n_features))

        for i, response in enumerate(responses):
            require_not_none(response, "response")
            answers = response.answers_by_question()

            for question in self._questions:
                answer = answers.get(question.id)
                if answer is None or answer.is_empty():
                    continue
                if answer.type is not question.type:
                    logger.debug(f"Ignoring {answer.type.value} answer to "
                                 f"{question.type.value} question {question.id}")
                    continue

                if question.type.is_choice:
                    self._encode_choice(X[i], question, answer)
                elif question.type is QuestionType.INT:
                    self._encode_numeric(X[i], question, answer)
                elif question.type is QuestionType.TEXT:
                    self._encode_text(X[i], question, answer)

        return X

    def fit_transform(self,
                      questions: Union[Survey, Sequence[Question]],
                      responses: Sequence[SurveyResponse]) -> np.ndarray:
        """Fit on ``responses`` and encode them."""
        return self.fit(questions, responses).transform(responses)

    def encode(self, responses: Sequence[SurveyResponse]) -> NamedMatrix:
        """
        Encode responses into a NamedMatrix.

        Rows are named by response id and columns by feature name.
        """
        X = self.transform(responses)
        return NamedMatrix(X, [r.id for r in responses], list(self._feature_names))

    # Fitting

    def _fit_choice(self, question: Question) -> None:
        option_map = {}
        for option in question.options:
            if option.id in option_map:
                continue
            option_map[option.id] = len(self._feature_names)
            self._feature_names.append(f"q{question.id}_opt{option.id}")
        self._option_index[question.id] = option_map

    def _fit_numeric(self, question: Question, responses: Sequence[SurveyResponse]) -> None:
        observed = []
        for response in responses:
            answer = response.answer_for(question.id)
            if answer is not None and answer.type is QuestionType.INT and _is_number(answer.value):
                observed.append(float(answer.value))

        if observed:
            low, high = min(observed), max(observed)
        else:
            low, high = 0.0, 0.0

        # All answers equal, or none at all: fall back to a unit-width domain
        if not observed or low >= high:
            high = low + 1.0

        self._numeric_domains[question.id] = (low, high)
        self._numeric_index[question.id] = len(self._feature_names)
        self._feature_names.append(f"q{question.id}_num")

    def _fit_text(self, question: Question, responses: Sequence[SurveyResponse]) -> None:
        words = set()
        for response in responses:
            answer = response.answer_for(question.id)
            if answer is not None and answer.type is QuestionType.TEXT and isinstance(answer.value, str):
                words.update(tokenize(answer.value))

        self._text_start[question.id] = len(self._feature_names)
        vocab = {}
        for relative_idx, word in enumerate(sorted(words)):
            vocab[word] = relative_idx
            self._feature_names.append(f"q{question.id}_word_{word}")
        self._text_vocab[question.id] = vocab

    # Encoding

    def _encode_choice(self, row: np.ndarray, question: Question, answer: Answer) -> None:
        option_map = self._option_index.get(question.id, {})
        value = answer.value

        if isinstance(value, list):
            option_ids = value if question.type is QuestionType.MULTI else value[:1]
        else:
            option_ids = [value]

        for option_id in option_ids:
            if option_id in option_map:
                row[option_map[option_id]] = 1.0

    def _encode_numeric(self, row: np.ndarray, question: Question, answer: Answer) -> None:
        if not _is_number(answer.value):
            logger.debug(f"Ignoring non-numeric answer to question {question.id}")
            return

        low, high = self._numeric_domains[question.id]
        width = high - low
        value = 0.0 if width < 1e-9 else (float(answer.value) - low) / width
        row[self._numeric_index[question.id]] = min(1.0, max(0.0, value))

    def _encode_text(self, row: np.ndarray, question: Question, answer: Answer) -> None:
        if not isinstance(answer.value, str):
            return

        vocab = self._text_vocab.get(question.id, {})
        start = self._text_start[question.id]

        counts: Dict[int, int] = {}
        for token in tokenize(answer.value):
            if token in vocab:
                col = start + vocab[token]
                counts[col] = counts.get(col, 0) + 1

        total = sum(counts.values())
        if total == 0:
            return
        for col, count in counts.items():
            row[col] = count / total
