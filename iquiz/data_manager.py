"""
Data manager for quiz catalog decoding, mapping and the on-disk cache.
"""
import json
import os
import logging
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import QuizDecodeError
from .models import Question, Quiz, RemoteQuestion, RemoteQuiz


GENERIC_ICON = "questionmark.circle"

# Checked in order; the first keyword found in the title wins.
TITLE_ICONS = (
    ("math", "mathIcon"),
    ("marvel", "marvelIcon"),
    ("science", "scienceIcon"),
)


def icon_name_for(title: str) -> str:
    """
    Pick an icon name from the quiz title.

    Args:
        title: Quiz title as downloaded

    Returns:
        Icon name for the first matching keyword, or the generic placeholder
    """
    lowered = title.lower()
    for keyword, icon in TITLE_ICONS:
        if keyword in lowered:
            return icon
    return GENERIC_ICON


_TYPE_NAMES = {str: "a string", list: "an array", dict: "an object"}


def _require(value: Any, expected: type, where: str) -> Any:
    if not isinstance(value, expected):
        raise QuizDecodeError(
            f"{where} must be {_TYPE_NAMES[expected]}, got {type(value).__name__}"
        )
    return value


def _decode_question(data: Any, where: str) -> RemoteQuestion:
    _require(data, dict, where)
    for key in ("text", "answers", "answer"):
        if key not in data:
            raise QuizDecodeError(f"{where} missing '{key}' field")

    answers = _require(data["answers"], list, f"{where} 'answers'")
    for i, option in enumerate(answers):
        _require(option, str, f"{where} answer {i}")

    return RemoteQuestion(
        text=_require(data["text"], str, f"{where} 'text'"),
        answers=list(answers),
        answer=_require(data["answer"], str, f"{where} 'answer'"),
    )


def decode_remote_quizzes(raw: bytes) -> List[RemoteQuiz]:
    """
    Decode a downloaded catalog body.

    Expected structure:
    [
        {
            "title": str,
            "desc": str,
            "questions": [
                {"text": str, "answers": [str, ...], "answer": str}
            ]
        }
    ]

    Args:
        raw: Response body bytes (UTF-8 JSON)

    Returns:
        Remote quiz records in document order

    Raises:
        QuizDecodeError: If the body is not valid JSON or does not match the structure
    """
    try:
        data = json.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise QuizDecodeError(f"Body is not valid UTF-8: {e}") from e
    except json.JSONDecodeError as e:
        raise QuizDecodeError(f"Invalid JSON: {e}") from e
    except RecursionError as e:
        raise QuizDecodeError("Invalid JSON: nesting too deep") from e

    _require(data, list, "Quiz catalog")

    quizzes = []
    for i, quiz_data in enumerate(data):
        where = f"Quiz {i}"
        _require(quiz_data, dict, where)
        for key in ("title", "desc", "questions"):
            if key not in quiz_data:
                raise QuizDecodeError(f"{where} missing '{key}' field")

        questions_data = _require(quiz_data["questions"], list, f"{where} 'questions'")
        quizzes.append(RemoteQuiz(
            title=_require(quiz_data["title"], str, f"{where} 'title'"),
            desc=_require(quiz_data["desc"], str, f"{where} 'desc'"),
            questions=[
                _decode_question(question_data, f"{where} question {j}")
                for j, question_data in enumerate(questions_data)
            ],
        ))

    return quizzes


def map_remote_quizzes(remote: List[RemoteQuiz]) -> List[Quiz]:
    """
    Map remote records into the local Quiz/Question model.

    Args:
        remote: Decoded remote quiz records

    Returns:
        Local quizzes in the same order
    """
    return [
        Quiz(
            title=rq.title,
            description=rq.desc,
            icon_name=icon_name_for(rq.title),
            questions=tuple(
                Question.from_wire(rqq.text, rqq.answers, rqq.answer_index)
                for rqq in rq.questions
            ),
        )
        for rq in remote
    ]


class DataManager:
    """Decodes catalog bodies and manages the single cache file."""

    CACHE_FILENAME = "quizzes_cache.json"

    def __init__(self, cache_path: str = "./data/quizzes_cache.json"):
        """
        Initialize DataManager with the cache file path.

        Args:
            cache_path: Location of the cached catalog body
        """
        self.cache_path = Path(cache_path)
        self.logger = logging.getLogger(__name__)

    def decode_quizzes(self, raw: bytes) -> List[Quiz]:
        """
        Decode and map a catalog body.

        Raises:
            QuizDecodeError: If the body does not match the remote structure
        """
        quizzes = map_remote_quizzes(decode_remote_quizzes(raw))
        self.logger.debug(f"Decoded {len(quizzes)} quizzes")
        return quizzes

    def write_cache(self, raw: bytes) -> bool:
        """
        Replace the cache file with ``raw`` atomically.

        The bytes go to a temporary file in the cache directory which is then
        renamed over the cache path, so readers see either the old or the new
        body in full.

        Args:
            raw: Verbatim response body

        Returns:
            True if the cache was written, False otherwise
        """
        tmp_path = None
        try:
            self.cache_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.cache_path.parent,
                prefix=f".{self.cache_path.name}.",
                suffix=".tmp",
            )
            with os.fdopen(fd, 'wb') as f:
                f.write(raw)
            os.replace(tmp_path, self.cache_path)
            tmp_path = None
            self.logger.info(f"Wrote {len(raw)} bytes to cache {self.cache_path}")
            return True
        except PermissionError:
            self.logger.error(f"Permission denied: Cannot write cache {self.cache_path}")
            return False
        except OSError as e:
            self.logger.error(f"Failed to write cache {self.cache_path}: {e}")
            return False
        finally:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass

    def read_cache(self) -> Optional[bytes]:
        """
        Read the cached catalog body.

        Returns:
            Cached bytes, or None if the file is absent or unreadable
        """
        try:
            return self.cache_path.read_bytes()
        except FileNotFoundError:
            self.logger.warning(f"No cache file at {self.cache_path}")
            return None
        except PermissionError:
            self.logger.error(f"Permission denied: Cannot read cache {self.cache_path}")
            return None
        except OSError as e:
            self.logger.error(f"Failed to read cache {self.cache_path}: {e}")
            return None

    def has_cache(self) -> bool:
        return self.cache_path.is_file()

    def clear_cache(self) -> bool:
        """Delete the cache file. Returns True if a file was removed."""
        try:
            self.cache_path.unlink()
            self.logger.info(f"Removed cache {self.cache_path}")
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            self.logger.error(f"Failed to remove cache {self.cache_path}: {e}")
            return False

    def get_cache_summary(self) -> Dict[str, Any]:
        """
        Get a summary of the cache file state.

        Returns:
            Dictionary with path, existence, size and modification time
        """
        summary = {
            'cache_path': str(self.cache_path),
            'exists': False,
            'size_bytes': 0,
            'modified': None,
        }
        try:
            stat = self.cache_path.stat()
        except OSError:
            return summary

        summary.update({
            'exists': True,
            'size_bytes': stat.st_size,
            'modified': datetime.fromtimestamp(stat.st_mtime),
        })
        return summary
