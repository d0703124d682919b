"""Poll and voting schemas."""

from datetime import datetime
from uuid import UUID

from ..domain.polls import PollState, QuestionType
from .base import BoardroomBaseModel


class PollCreate(BoardroomBaseModel):
    title: str
    description: str
    start_date: datetime
    end_date: datetime


class QuestionCreate(BoardroomBaseModel):
    text: str
    question_type: QuestionType
    page: int = 1
    order: int | None = None
    details: str | None = None


class AnswerCreate(BoardroomBaseModel):
    text: str
    order: int | None = None


class PollUpdate(BoardroomBaseModel):
    title: str | None = None
    description: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None


class QuestionUpdate(BoardroomBaseModel):
    text: str | None = None
    details: str | None = None
    question_type: QuestionType | None = None


class AnswerUpdate(BoardroomBaseModel):
    text: str | None = None
    order: int | None = None


class QuestionPosition(BoardroomBaseModel):
    question_id: UUID
    page: int
    order: int


class QuestionOrderUpdate(BoardroomBaseModel):
    positions: list[QuestionPosition]


class AnswerResponse(BoardroomBaseModel):
    id: UUID
    question_id: UUID
    text: str
    order: int
    archived_at: datetime | None = None


class QuestionResponse(BoardroomBaseModel):
    id: UUID
    poll_id: UUID
    text: str
    details: str | None = None
    page: int
    order: int
    question_type: QuestionType
    archived_at: datetime | None = None
    answers: list[AnswerResponse] = []


class PollResponse(BoardroomBaseModel):
    id: UUID
    title: str
    description: str
    board_id: UUID
    created_by_id: UUID
    start_date: datetime
    end_date: datetime
    state: PollState
    weight_criteria: str | None = None
    created_at: datetime
    questions: list[QuestionResponse] = []


class ParticipantResponse(BoardroomBaseModel):
    id: UUID
    poll_id: UUID
    user_id: UUID
    user_weight: float
    snapshot_at: datetime


class WeightUpdate(BoardroomBaseModel):
    weight: float
    reason: str | None = None


class WeightChangeResponse(BoardroomBaseModel):
    id: UUID
    participant_id: UUID
    user_id: UUID
    old_weight: float
    new_weight: float
    changed_by_id: UUID
    reason: str | None = None
    changed_at: datetime


class DraftSubmit(BoardroomBaseModel):
    question_id: UUID
    answer_id: UUID
    remove: bool = False


class DraftResponse(BoardroomBaseModel):
    poll_id: UUID
    question_id: UUID
    answer_id: UUID
    user_id: UUID


class VoteResponse(BoardroomBaseModel):
    question_id: UUID
    answer_id: UUID
    user_weight: float
    created_at: datetime


class VotingProgressResponse(BoardroomBaseModel):
    drafts: list[DraftResponse]
    has_finished: bool
