"""
Quiz flow for a single attempt at a quiz.
Drives the user from the first question to a scored completion.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from .models import FlowState, Question, Quiz

PERFECT_FEEDBACK = "Perfect!"
ALMOST_FEEDBACK = "Almost!"
FINISHED_FEEDBACK = "Finished"


def feedback_for(score: int, total: int) -> str:
    """
    Feedback line shown when an attempt finishes.

    A score one short of the total counts as "Almost!", which for quizzes of
    one question (or none) also covers a score of zero.
    """
    if score == total:
        return PERFECT_FEEDBACK
    if score >= total - 1:
        return ALMOST_FEEDBACK
    return FINISHED_FEEDBACK


class QuizFlow:
    """
    State machine for one quiz attempt.

    While asking, the user selects an option and submits it. Submitting
    scores the answer and reveals the correct option; advancing moves to the
    next question or finishes the attempt. The attempt can be abandoned at
    any point, in which case no result is recorded.
    """

    def __init__(self, quiz: Quiz):
        """
        Start an attempt at the first question.

        Args:
            quiz: Quiz to take
        """
        self.logger = logging.getLogger(__name__)
        self.quiz = quiz
        self.current_index = 0
        self.score = 0
        self.selected: Optional[int] = None
        self.start_time = datetime.now()
        self.end_time: Optional[datetime] = None
        self._state = FlowState.ASKING

        if self.total_questions == 0:
            self._finish()

        self.logger.debug(f"Started attempt at '{quiz.title}' with {self.total_questions} questions")

    @property
    def state(self) -> FlowState:
        return self._state

    @property
    def total_questions(self) -> int:
        return len(self.quiz.questions)

    @property
    def is_finished(self) -> bool:
        return self._state is FlowState.FINISHED

    @property
    def is_abandoned(self) -> bool:
        return self._state is FlowState.ABANDONED

    @property
    def is_revealing(self) -> bool:
        return self._state is FlowState.REVEALING

    @property
    def current_question(self) -> Optional[Question]:
        """Question being asked or revealed, None once the attempt has ended."""
        if self._state not in (FlowState.ASKING, FlowState.REVEALING):
            return None
        return self.quiz.questions[self.current_index]

    @property
    def is_answer_correct(self) -> Optional[bool]:
        """Whether the submitted answer was right; None unless revealing."""
        if self._state is not FlowState.REVEALING:
            return None
        return self.selected == self.current_question.correct_index

    @property
    def correct_option_text(self) -> Optional[str]:
        """Text of the correct option while revealing; None if upstream gave no valid option."""
        if self._state is not FlowState.REVEALING:
            return None
        question = self.current_question
        if not question.has_valid_answer():
            return None
        return question.options[question.correct_index]

    def select(self, option_index: int) -> bool:
        """
        Select an option of the current question.

        Returns:
            True if the selection was recorded, False if not allowed now
        """
        if self._state is not FlowState.ASKING:
            self.logger.debug(f"Ignoring selection while {self._state.value}")
            return False

        if not 0 <= option_index < len(self.current_question.options):
            self.logger.debug(f"Ignoring selection of missing option {option_index}")
            return False

        self.selected = option_index
        return True

    def submit(self) -> bool:
        """
        Score the selected option and reveal the answer.

        Returns:
            True if submitted, False if nothing is selected or not asking
        """
        if self._state is not FlowState.ASKING or self.selected is None:
            self.logger.debug("Submit ignored: no selection or not asking")
            return False

        if self.selected == self.current_question.correct_index:
            self.score += 1
        self._state = FlowState.REVEALING
        return True

    def advance(self) -> bool:
        """
        Move past a revealed answer to the next question or to the end.

        Returns:
            True if advanced, False if no answer is being revealed
        """
        if self._state is not FlowState.REVEALING:
            self.logger.debug(f"Advance ignored while {self._state.value}")
            return False

        self.current_index += 1
        self.selected = None
        if self.current_index >= self.total_questions:
            self._finish()
        else:
            self._state = FlowState.ASKING
        return True

    def swipe_forward(self) -> bool:
        """Submit when a selection is pending, advance when revealing."""
        if self._state is FlowState.REVEALING:
            return self.advance()
        if self._state is FlowState.ASKING and self.selected is not None:
            return self.submit()
        return False

    def abandon(self) -> bool:
        """
        End the attempt without recording a result.

        Returns:
            True if the attempt was ended, False if it had already ended
        """
        if self._state in (FlowState.FINISHED, FlowState.ABANDONED):
            return False

        self._state = FlowState.ABANDONED
        self.end_time = datetime.now()
        self.logger.info(
            f"Attempt at '{self.quiz.title}' abandoned at question "
            f"{self.current_index + 1} of {self.total_questions}"
        )
        return True

    def _finish(self) -> None:
        self._state = FlowState.FINISHED
        self.end_time = datetime.now()
        self.logger.info(
            f"Attempt at '{self.quiz.title}' finished: {self.score} of {self.total_questions}"
        )

    @property
    def feedback_text(self) -> Optional[str]:
        if not self.is_finished:
            return None
        return feedback_for(self.score, self.total_questions)

    def get_progress(self) -> Dict[str, Any]:
        """
        Get progress information for the attempt.

        Returns:
            Dictionary with position, score and state
        """
        return {
            'quiz_title': self.quiz.title,
            'state': self._state.value,
            'current_question': min(self.current_index + 1, self.total_questions),
            'total_questions': self.total_questions,
            'score': self.score,
            'selected': self.selected,
            'label': f"Question {min(self.current_index + 1, self.total_questions)} of {self.total_questions}",
        }

    def get_completion_info(self) -> Optional[Dict[str, Any]]:
        """
        Get completion information for a finished attempt.

        Returns:
            Dictionary with score, feedback and duration, None unless finished
        """
        if not self.is_finished:
            return None

        duration = self.end_time - self.start_time
        return {
            'quiz_title': self.quiz.title,
            'score': self.score,
            'total_questions': self.total_questions,
            'feedback': self.feedback_text,
            'summary': f"You got {self.score} of {self.total_questions} correct.",
            'duration': {
                'total_seconds': int(duration.total_seconds()),
                'minutes': int(duration.total_seconds() // 60),
                'seconds': int(duration.total_seconds() % 60)
            },
            'start_time': self.start_time,
            'completion_time': self.end_time
        }
