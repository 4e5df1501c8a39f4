"""
Core data models for the iQuiz catalog and quiz flow.
"""
import re
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple


# Plain ASCII decimal only: no whitespace, underscores or other digit scripts
_ANSWER_RE = re.compile(r"[+-]?[0-9]+")


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Question:
    """A prompt with ordered answer options and one designated correct option."""
    text: str
    options: Tuple[str, ...]
    correct_index: int
    id: str = field(default_factory=_new_id, compare=False)

    def __post_init__(self):
        object.__setattr__(self, 'options', tuple(self.options))
        if not 0 <= self.correct_index < len(self.options):
            raise ValueError(
                f"correct_index {self.correct_index} is out of range for "
                f"{len(self.options)} options"
            )

    @classmethod
    def from_wire(cls, text: str, options: List[str], correct_index: int) -> "Question":
        """
        Build a question from downloaded data without the range check.

        Upstream answers are only clamped at zero, so an index past the last
        option is kept as delivered.
        """
        question = cls.__new__(cls)
        object.__setattr__(question, 'text', text)
        object.__setattr__(question, 'options', tuple(options))
        object.__setattr__(question, 'correct_index', correct_index)
        object.__setattr__(question, 'id', _new_id())
        return question

    def has_valid_answer(self) -> bool:
        return 0 <= self.correct_index < len(self.options)


@dataclass(frozen=True)
class Quiz:
    """A named collection of ordered questions with display metadata."""
    title: str
    description: str
    icon_name: str
    questions: Tuple[Question, ...] = ()
    id: str = field(default_factory=_new_id, compare=False)

    def __post_init__(self):
        object.__setattr__(self, 'questions', tuple(self.questions))

    @property
    def question_count(self) -> int:
        return len(self.questions)


@dataclass(frozen=True)
class RemoteQuestion:
    """Wire mirror of a question: ``{text, answers, answer}``."""
    text: str
    answers: List[str]
    answer: str

    @property
    def answer_index(self) -> int:
        """Convert the one-based ``answer`` string into a zero-based index."""
        if isinstance(self.answer, str) and _ANSWER_RE.fullmatch(self.answer):
            raw = int(self.answer)
        else:
            raw = 1
        return max(0, raw - 1)


@dataclass(frozen=True)
class RemoteQuiz:
    """Wire mirror of a quiz: ``{title, desc, questions}``."""
    title: str
    desc: str
    questions: List[RemoteQuestion]


class LoadResult(Enum):
    """Terminal outcome of a single catalog refresh."""
    SUCCESS = "success"
    FALLBACK_CACHE = "fallback_cache"
    FALLBACK_NO_CACHE = "fallback_no_cache"
    NO_DATA = "no_data"
    BAD_URL = "bad_url"


class FlowState(Enum):
    """States of a single quiz attempt."""
    ASKING = "asking"
    REVEALING = "revealing"
    FINISHED = "finished"
    ABANDONED = "abandoned"
