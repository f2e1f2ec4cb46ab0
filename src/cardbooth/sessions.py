"""Token-keyed, single-use input sessions."""

import logging
from datetime import datetime
from typing import Any

from cardbooth.errors import AlreadyUsedError, InvalidInputError, NotFoundError
from cardbooth.generator.validation import clamp_text
from cardbooth.models.card import GeneratedQuestionSet
from cardbooth.models.session import InputSession

logger = logging.getLogger(__name__)

ANSWER_NAME_MAX_LENGTH = 12
ANSWER_TEXT_MAX_LENGTH = 200


class InputSessionStore:
    """Holds pending question/answer exchanges until answered or expired."""

    def __init__(self, ttl_seconds: float = 600) -> None:
        self.ttl_seconds = ttl_seconds
        self._sessions: dict[str, InputSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self, question_set: GeneratedQuestionSet) -> tuple[str, datetime]:
        """Store a new pending session for a generated question set.

        Returns:
            Tuple of (token, expires_at).
        """
        session = InputSession(
            session_id=question_set.session_id,
            questions=list(question_set.questions),
        )
        self._sessions[session.token] = session
        logger.info(f"Input session {session.token} created ({len(session.questions)} questions)")
        return session.token, session.expires_at(self.ttl_seconds)

    def get(self, token: str) -> InputSession | None:
        """Look up a live session. Expired sessions are evicted and reported as missing."""
        session = self._sessions.get(token)
        if session is None:
            return None
        if session.is_expired(self.ttl_seconds):
            del self._sessions[token]
            logger.debug(f"Input session {token} expired on lookup")
            return None
        return session

    def submit_answers(self, token: str, name: Any, answers: Any) -> list[str]:
        """Accept the one and only answer submission for a session.

        Args:
            token: Session token from the QR code.
            name: Player name.
            answers: Mapping of question id (int or str) to answer text.

        Returns:
            The keywords derived from the answers.

        Raises:
            NotFoundError: Unknown or expired token.
            AlreadyUsedError: Answers were already submitted.
            InvalidInputError: Name or any answer is missing or empty.
        """
        session = self.get(token)
        if session is None:
            raise NotFoundError("Session not found")
        if session.is_answered:
            raise AlreadyUsedError()

        clean_name = clamp_text("answer.name", name, ANSWER_NAME_MAX_LENGTH)
        if not clean_name:
            raise InvalidInputError("Please enter a name")
        if not isinstance(answers, dict):
            raise InvalidInputError("Answers are malformed")

        keywords = [f"session:{session.session_id}", f"name:{clean_name}"]
        for question in session.questions:
            raw = answers.get(question.id, answers.get(str(question.id)))
            text = clamp_text(f"answer.q{question.id}", raw, ANSWER_TEXT_MAX_LENGTH)
            if not text:
                raise InvalidInputError("Please answer every question")
            keywords.append(f"q{question.id}:{text}")

        session.keywords = keywords
        session.answered_at = datetime.now()
        logger.info(f"Input session {token} answered")
        return keywords

    def sweep(self) -> int:
        """Purge every session older than the TTL, answered or not.

        Returns:
            Number of sessions removed.
        """
        expired = [token for token, session in self._sessions.items() if session.is_expired(self.ttl_seconds)]
        for token in expired:
            del self._sessions[token]
        if expired:
            logger.info(f"Purged {len(expired)} expired input session(s)")
        return len(expired)
