"""Poll aggregate, participants, drafts and votes.

State machine::

    DRAFT --take_snapshot--> READY --activate--> ACTIVE --finish--> FINISHED
      ^                        |  ^                 |
      +---discard_snapshot-----+  +---deactivate----+

Questions and answers are archived rather than deleted.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from .errors import ValidationError
from .users import utcnow


class PollErrors:
    """Poll-related error codes, translated at the presentation layer."""

    NOT_FOUND = "poll.errors.pollNotFound"
    BOARD_NOT_FOUND = "poll.errors.boardNotFound"
    QUESTION_NOT_FOUND = "poll.errors.questionNotFound"
    ANSWER_NOT_FOUND = "poll.errors.answerNotFound"
    PARTICIPANT_NOT_FOUND = "poll.errors.participantNotFound"
    CANNOT_MODIFY_ACTIVE = "poll.errors.cannotModifyActive"
    CANNOT_MODIFY_FINISHED = "poll.errors.cannotModifyFinished"
    CANNOT_MODIFY_HAS_VOTES = "poll.errors.cannotModifyHasVotes"
    NO_UPDATES = "poll.errors.noUpdates"

    TITLE_EMPTY = "domain.poll.titleEmpty"
    TITLE_TOO_LONG = "domain.poll.titleTooLong"
    DESCRIPTION_EMPTY = "domain.poll.descriptionEmpty"
    DESCRIPTION_TOO_LONG = "domain.poll.descriptionTooLong"
    INVALID_DATES = "domain.poll.invalidDates"

    MUST_BE_DRAFT = "domain.poll.mustBeDraft"
    MUST_BE_READY = "domain.poll.mustBeReady"
    MUST_BE_ACTIVE = "domain.poll.mustBeActive"
    POLL_FINISHED = "domain.poll.pollFinished"
    ALREADY_ARCHIVED = "domain.poll.alreadyArchived"
    NO_QUESTIONS = "domain.poll.noQuestions"
    QUESTION_NO_ANSWERS = "domain.poll.questionNoAnswers"
    CANNOT_DISCARD_SNAPSHOT_HAS_VOTES = "domain.poll.cannotDiscardSnapshotHasVotes"
    CANNOT_ADD_QUESTION = "domain.poll.cannotAddQuestionFinished"
    CANNOT_ADD_QUESTION_ARCHIVED = "domain.poll.cannotAddQuestionArchived"
    CANNOT_ADD_ANSWER = "domain.poll.cannotAddAnswerActive"

    QUESTION_TEXT_EMPTY = "domain.poll.questionTextEmpty"
    QUESTION_TEXT_TOO_LONG = "domain.poll.questionTextTooLong"
    QUESTION_DETAILS_TOO_LONG = "domain.poll.questionDetailsTooLong"
    QUESTION_INVALID_PAGE = "domain.poll.questionInvalidPage"
    QUESTION_INVALID_ORDER = "domain.poll.questionInvalidOrder"
    QUESTION_INVALID_TYPE = "domain.poll.questionInvalidType"
    QUESTION_ARCHIVED = "domain.poll.questionCannotAddAnswerArchived"
    QUESTION_ALREADY_ARCHIVED = "domain.poll.questionAlreadyArchived"

    ANSWER_TEXT_EMPTY = "domain.poll.answerTextEmpty"
    ANSWER_TEXT_TOO_LONG = "domain.poll.answerTextTooLong"
    ANSWER_INVALID_ORDER = "domain.poll.answerInvalidOrder"
    ANSWER_ALREADY_ARCHIVED = "domain.poll.answerAlreadyArchived"

    INVALID_WEIGHT = "domain.poll.invalidWeight"
    ALREADY_VOTED = "domain.poll.alreadyVoted"
    NOT_PARTICIPANT = "domain.poll.notParticipant"
    NOT_ACTIVE = "domain.poll.pollNotActive"
    MUST_ANSWER_ALL_QUESTIONS = "domain.poll.mustAnswerAllQuestions"
    SINGLE_CHOICE_MULTIPLE_ANSWERS = "domain.poll.singleChoiceMultipleAnswers"
    CANNOT_MODIFY_PARTICIPANTS = "domain.poll.cannotModifyParticipantsHasVotes"
    WEIGHT_REASON_TOO_LONG = "domain.poll.weightReasonTooLong"


TITLE_MAX_LENGTH = 500
DESCRIPTION_MAX_LENGTH = 5000
TEXT_MAX_LENGTH = 1000
DETAILS_MAX_LENGTH = 5000
DEFAULT_WEIGHT = 1.0
WEIGHT_REASON_MAX_LENGTH = 1000


class PollState(str, Enum):
    DRAFT = "draft"
    READY = "ready"
    ACTIVE = "active"
    FINISHED = "finished"


class QuestionType(str, Enum):
    SINGLE_CHOICE = "single-choice"
    MULTIPLE_CHOICE = "multiple-choice"


def _check_text(
    value: str | None, max_length: int, empty_code: str, long_code: str, name: str
) -> None:
    if not value or not value.strip():
        raise ValidationError(f"{name} is required", empty_code, field_errors={name: "Required"})
    if len(value) > max_length:
        raise ValidationError(
            f"{name} is too long", long_code, field_errors={name: "Too long"}
        )


def _check_details(details: str | None) -> None:
    if details and len(details) > DETAILS_MAX_LENGTH:
        raise ValidationError("Details are too long", PollErrors.QUESTION_DETAILS_TOO_LONG)


def _check_position(page: int, order: int) -> None:
    if page < 1:
        raise ValidationError("Page must be at least 1", PollErrors.QUESTION_INVALID_PAGE)
    if order < 0:
        raise ValidationError("Order must not be negative", PollErrors.QUESTION_INVALID_ORDER)


def _parse_question_type(value: "QuestionType | str") -> QuestionType:
    try:
        return QuestionType(value)
    except ValueError:
        raise ValidationError(
            f"Unknown question type: {value}", PollErrors.QUESTION_INVALID_TYPE
        ) from None


@dataclass
class Answer:
    id: UUID
    question_id: UUID
    text: str
    order: int
    created_at: datetime = field(default_factory=utcnow)
    archived_at: datetime | None = None

    @classmethod
    def create(cls, question_id: UUID, text: str, order: int) -> "Answer":
        _check_text(
            text, TEXT_MAX_LENGTH, PollErrors.ANSWER_TEXT_EMPTY, PollErrors.ANSWER_TEXT_TOO_LONG, "text"
        )
        if order < 0:
            raise ValidationError("Answer order must not be negative", PollErrors.ANSWER_INVALID_ORDER)
        return cls(id=uuid4(), question_id=question_id, text=text.strip(), order=order)

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None

    def update(self, text: str | None = None, order: int | None = None) -> None:
        if text is not None:
            _check_text(
                text,
                TEXT_MAX_LENGTH,
                PollErrors.ANSWER_TEXT_EMPTY,
                PollErrors.ANSWER_TEXT_TOO_LONG,
                "text",
            )
        if order is not None and order < 0:
            raise ValidationError("Answer order must not be negative", PollErrors.ANSWER_INVALID_ORDER)

        if text is not None:
            self.text = text.strip()
        if order is not None:
            self.order = order

    def archive(self) -> None:
        if self.is_archived:
            raise ValidationError("Answer is already archived", PollErrors.ANSWER_ALREADY_ARCHIVED)
        self.archived_at = utcnow()


@dataclass
class Question:
    id: UUID
    poll_id: UUID
    text: str
    page: int
    order: int
    question_type: QuestionType
    details: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    archived_at: datetime | None = None
    answers: list[Answer] = field(default_factory=list)

    @classmethod
    def create(
        cls,
        poll_id: UUID,
        text: str,
        question_type: "QuestionType | str",
        page: int = 1,
        order: int = 0,
        details: str | None = None,
    ) -> "Question":
        _check_text(
            text,
            TEXT_MAX_LENGTH,
            PollErrors.QUESTION_TEXT_EMPTY,
            PollErrors.QUESTION_TEXT_TOO_LONG,
            "text",
        )
        _check_details(details)
        _check_position(page, order)
        question_type = _parse_question_type(question_type)

        return cls(
            id=uuid4(),
            poll_id=poll_id,
            text=text.strip(),
            details=details.strip() if details and details.strip() else None,
            page=page,
            order=order,
            question_type=question_type,
        )

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None

    @property
    def is_single_choice(self) -> bool:
        return self.question_type == QuestionType.SINGLE_CHOICE

    def active_answers(self) -> list[Answer]:
        return sorted((a for a in self.answers if not a.is_archived), key=lambda a: a.order)

    def get_answer(self, answer_id: UUID) -> Answer | None:
        return next((a for a in self.answers if a.id == answer_id), None)

    def update(
        self,
        text: str | None = None,
        details: str | None = None,
        question_type: "QuestionType | str | None" = None,
    ) -> None:
        if text is not None:
            _check_text(
                text,
                TEXT_MAX_LENGTH,
                PollErrors.QUESTION_TEXT_EMPTY,
                PollErrors.QUESTION_TEXT_TOO_LONG,
                "text",
            )
        _check_details(details)
        if question_type is not None:
            question_type = _parse_question_type(question_type)

        if text is not None:
            self.text = text.strip()
        if details is not None:
            # An empty string clears the details
            self.details = details.strip() or None
        if question_type is not None:
            self.question_type = question_type

    def move(self, page: int, order: int) -> None:
        _check_position(page, order)
        self.page = page
        self.order = order

    def archive(self) -> None:
        if self.is_archived:
            raise ValidationError(
                "Question is already archived", PollErrors.QUESTION_ALREADY_ARCHIVED
            )
        self.archived_at = utcnow()


@dataclass
class Poll:
    """Poll aggregate root. Owns its questions and their answers."""

    id: UUID
    title: str
    description: str
    board_id: UUID
    created_by_id: UUID
    start_date: datetime
    end_date: datetime
    state: PollState = PollState.DRAFT
    weight_criteria: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    archived_at: datetime | None = None
    questions: list[Question] = field(default_factory=list)

    @classmethod
    def create(
        cls,
        title: str,
        description: str,
        board_id: UUID,
        created_by_id: UUID,
        start_date: datetime,
        end_date: datetime,
    ) -> "Poll":
        _check_text(
            title, TITLE_MAX_LENGTH, PollErrors.TITLE_EMPTY, PollErrors.TITLE_TOO_LONG, "title"
        )
        _check_text(
            description,
            DESCRIPTION_MAX_LENGTH,
            PollErrors.DESCRIPTION_EMPTY,
            PollErrors.DESCRIPTION_TOO_LONG,
            "description",
        )
        if start_date >= end_date:
            raise ValidationError(
                "Start date must be before end date",
                PollErrors.INVALID_DATES,
                field_errors={"end_date": "Must be after start date"},
            )
        return cls(
            id=uuid4(),
            title=title.strip(),
            description=description.strip(),
            board_id=board_id,
            created_by_id=created_by_id,
            start_date=start_date,
            end_date=end_date,
        )

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None

    def active_questions(self) -> list[Question]:
        return sorted(
            (q for q in self.questions if not q.is_archived), key=lambda q: (q.page, q.order)
        )

    def get_question(self, question_id: UUID) -> Question | None:
        return next((q for q in self.questions if q.id == question_id), None)

    def _require_state(self, state: PollState, code: str) -> None:
        if self.state != state:
            raise ValidationError(f"Poll must be {state.value}", code)

    def add_question(self, question: Question) -> None:
        if self.state in (PollState.ACTIVE, PollState.FINISHED):
            raise ValidationError(
                "Questions cannot be added to an active or finished poll",
                PollErrors.CANNOT_ADD_QUESTION,
            )
        if self.is_archived:
            raise ValidationError(
                "Questions cannot be added to an archived poll",
                PollErrors.CANNOT_ADD_QUESTION_ARCHIVED,
            )
        self.questions.append(question)

    def add_answer(self, question_id: UUID, text: str, order: int) -> Answer:
        if self.state in (PollState.ACTIVE, PollState.FINISHED):
            raise ValidationError(
                "Answers cannot be added to an active or finished poll",
                PollErrors.CANNOT_ADD_ANSWER,
            )
        question = self.get_question(question_id)
        if question is None:
            raise ValidationError("Question not found", PollErrors.QUESTION_NOT_FOUND)
        if question.is_archived:
            raise ValidationError("Question is archived", PollErrors.QUESTION_ARCHIVED)
        answer = Answer.create(question_id, text, order)
        question.answers.append(answer)
        return answer

    def ensure_editable(self, has_votes: bool) -> None:
        """Details, questions and answers change only before voting starts."""
        if self.state == PollState.ACTIVE:
            raise ValidationError("An active poll cannot be edited", PollErrors.CANNOT_MODIFY_ACTIVE)
        if self.state == PollState.FINISHED:
            raise ValidationError(
                "A finished poll cannot be edited", PollErrors.CANNOT_MODIFY_FINISHED
            )
        if has_votes:
            raise ValidationError(
                "A poll with votes cannot be edited", PollErrors.CANNOT_MODIFY_HAS_VOTES
            )

    def update_details(
        self,
        title: str | None = None,
        description: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> None:
        if title is not None:
            _check_text(
                title, TITLE_MAX_LENGTH, PollErrors.TITLE_EMPTY, PollErrors.TITLE_TOO_LONG, "title"
            )
        if description is not None:
            _check_text(
                description,
                DESCRIPTION_MAX_LENGTH,
                PollErrors.DESCRIPTION_EMPTY,
                PollErrors.DESCRIPTION_TOO_LONG,
                "description",
            )
        start = start_date or self.start_date
        end = end_date or self.end_date
        if start >= end:
            raise ValidationError(
                "Start date must be before end date",
                PollErrors.INVALID_DATES,
                field_errors={"end_date": "Must be after start date"},
            )

        if title is not None:
            self.title = title.strip()
        if description is not None:
            self.description = description.strip()
        self.start_date = start
        self.end_date = end

    def reorder_questions(self, positions: list[tuple[UUID, int, int]]) -> None:
        """Apply (question_id, page, order) moves. Allowed until the poll is finished."""
        if self.state == PollState.FINISHED:
            raise ValidationError(
                "A finished poll cannot be edited", PollErrors.CANNOT_MODIFY_FINISHED
            )
        if not positions:
            raise ValidationError("No question positions given", PollErrors.NO_UPDATES)

        moves = []
        for question_id, page, order in positions:
            question = self.get_question(question_id)
            if question is None:
                raise ValidationError("Question not found", PollErrors.QUESTION_NOT_FOUND)
            _check_position(page, order)
            moves.append((question, page, order))
        for question, page, order in moves:
            question.move(page, order)

    def take_snapshot(self) -> None:
        """DRAFT -> READY. Needs at least one question, each with an answer."""
        self._require_state(PollState.DRAFT, PollErrors.MUST_BE_DRAFT)
        questions = self.active_questions()
        if not questions:
            raise ValidationError("Poll has no questions", PollErrors.NO_QUESTIONS)
        for question in questions:
            if not question.active_answers():
                raise ValidationError(
                    f"Question '{question.text}' has no answers", PollErrors.QUESTION_NO_ANSWERS
                )
        self.state = PollState.READY

    def discard_snapshot(self, has_votes: bool) -> None:
        self._require_state(PollState.READY, PollErrors.MUST_BE_READY)
        if has_votes:
            raise ValidationError(
                "Snapshot cannot be discarded once votes exist",
                PollErrors.CANNOT_DISCARD_SNAPSHOT_HAS_VOTES,
            )
        self.state = PollState.DRAFT

    def activate(self) -> None:
        self._require_state(PollState.READY, PollErrors.MUST_BE_READY)
        self.state = PollState.ACTIVE

    def deactivate(self) -> None:
        self._require_state(PollState.ACTIVE, PollErrors.MUST_BE_ACTIVE)
        self.state = PollState.READY

    def finish(self) -> None:
        self._require_state(PollState.ACTIVE, PollErrors.MUST_BE_ACTIVE)
        self.state = PollState.FINISHED

    def can_modify_participants(self, has_votes: bool) -> bool:
        return self.state == PollState.READY and not has_votes

    def ensure_accepting_votes(self) -> None:
        if self.state == PollState.FINISHED:
            raise ValidationError("Poll is finished", PollErrors.POLL_FINISHED)
        if self.state != PollState.ACTIVE:
            raise ValidationError("Poll is not active", PollErrors.NOT_ACTIVE)


def _check_weight(weight: float) -> None:
    if weight < 0:
        raise ValidationError(
            "Weight must not be negative",
            PollErrors.INVALID_WEIGHT,
            field_errors={"weight": "Must not be negative"},
        )


@dataclass
class PollParticipant:
    """Board member snapshotted into a poll with a voting weight."""

    id: UUID
    poll_id: UUID
    user_id: UUID
    user_weight: float = DEFAULT_WEIGHT
    snapshot_at: datetime = field(default_factory=utcnow)

    @classmethod
    def create(cls, poll_id: UUID, user_id: UUID, weight: float = DEFAULT_WEIGHT) -> "PollParticipant":
        _check_weight(weight)
        return cls(id=uuid4(), poll_id=poll_id, user_id=user_id, user_weight=weight)

    def update_weight(
        self, weight: float, changed_by_id: UUID, reason: str | None = None
    ) -> "WeightChange":
        """Set a new weight and return the change record to persist."""
        _check_weight(weight)
        reason = reason.strip() if reason and reason.strip() else None
        if reason and len(reason) > WEIGHT_REASON_MAX_LENGTH:
            raise ValidationError(
                "Reason is too long",
                PollErrors.WEIGHT_REASON_TOO_LONG,
                field_errors={"reason": "Too long"},
            )
        change = WeightChange(
            id=uuid4(),
            participant_id=self.id,
            poll_id=self.poll_id,
            user_id=self.user_id,
            old_weight=self.user_weight,
            new_weight=weight,
            changed_by_id=changed_by_id,
            reason=reason,
        )
        self.user_weight = weight
        return change


@dataclass(frozen=True)
class WeightChange:
    """History entry for one participant weight change."""

    id: UUID
    participant_id: UUID
    poll_id: UUID
    user_id: UUID
    old_weight: float
    new_weight: float
    changed_by_id: UUID
    reason: str | None = None
    changed_at: datetime = field(default_factory=utcnow)


@dataclass
class VoteDraft:
    """An answer a participant has selected but not yet submitted."""

    poll_id: UUID
    question_id: UUID
    answer_id: UUID
    user_id: UUID
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class Vote:
    """Submitted vote. Never changes once written."""

    poll_id: UUID
    question_id: UUID
    answer_id: UUID
    user_id: UUID
    user_weight: float
    created_at: datetime = field(default_factory=utcnow)

    @classmethod
    def from_draft(cls, draft: VoteDraft, weight: float) -> "Vote":
        _check_weight(weight)
        return cls(
            poll_id=draft.poll_id,
            question_id=draft.question_id,
            answer_id=draft.answer_id,
            user_id=draft.user_id,
            user_weight=weight,
        )


@dataclass
class VotingProgress:
    drafts: list[VoteDraft]
    has_finished: bool
