"""API routes for poll editing, lifecycle and voting."""

from uuid import UUID

from fastapi import APIRouter, status

from ..core.dependencies import CurrentUserDep, PollServiceDep, VotingServiceDep
from ..schemas import (
    AnswerCreate,
    AnswerResponse,
    AnswerUpdate,
    DraftResponse,
    DraftSubmit,
    ParticipantResponse,
    PollCreate,
    PollResponse,
    PollUpdate,
    QuestionCreate,
    QuestionOrderUpdate,
    QuestionResponse,
    QuestionUpdate,
    VoteResponse,
    VotingProgressResponse,
    WeightChangeResponse,
    WeightUpdate,
)
from .errors import ok_or_raise

router = APIRouter(tags=["polls"])


# =============================================================================
# EDITING
# =============================================================================


@router.post(
    "/boards/{board_id}/polls",
    response_model=PollResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_poll(
    board_id: UUID,
    data: PollCreate,
    current_user: CurrentUserDep,
    service: PollServiceDep,
):
    poll = ok_or_raise(
        await service.create_poll(
            board_id,
            current_user.id,
            data.title,
            data.description,
            data.start_date,
            data.end_date,
        )
    )
    return PollResponse.model_validate(poll)


@router.get("/polls/{poll_id}", response_model=PollResponse)
async def get_poll(poll_id: UUID, current_user: CurrentUserDep, service: PollServiceDep):
    poll = ok_or_raise(await service.get_poll(poll_id))
    return PollResponse.model_validate(poll)


@router.post(
    "/polls/{poll_id}/questions",
    response_model=QuestionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_question(
    poll_id: UUID,
    data: QuestionCreate,
    current_user: CurrentUserDep,
    service: PollServiceDep,
):
    question = ok_or_raise(
        await service.add_question(
            poll_id,
            current_user.id,
            data.text,
            data.question_type,
            page=data.page,
            order=data.order,
            details=data.details,
        )
    )
    return QuestionResponse.model_validate(question)


@router.post(
    "/polls/{poll_id}/questions/{question_id}/answers",
    response_model=AnswerResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_answer(
    poll_id: UUID,
    question_id: UUID,
    data: AnswerCreate,
    current_user: CurrentUserDep,
    service: PollServiceDep,
):
    answer = ok_or_raise(
        await service.add_answer(poll_id, question_id, current_user.id, data.text, data.order)
    )
    return AnswerResponse.model_validate(answer)


@router.patch("/polls/{poll_id}", response_model=PollResponse)
async def update_poll(
    poll_id: UUID,
    data: PollUpdate,
    current_user: CurrentUserDep,
    service: PollServiceDep,
):
    poll = ok_or_raise(
        await service.update_poll(
            poll_id,
            current_user.id,
            title=data.title,
            description=data.description,
            start_date=data.start_date,
            end_date=data.end_date,
        )
    )
    return PollResponse.model_validate(poll)


@router.put("/polls/{poll_id}/questions/order", response_model=PollResponse)
async def update_question_order(
    poll_id: UUID,
    data: QuestionOrderUpdate,
    current_user: CurrentUserDep,
    service: PollServiceDep,
):
    poll = ok_or_raise(
        await service.update_question_order(
            poll_id,
            current_user.id,
            [(p.question_id, p.page, p.order) for p in data.positions],
        )
    )
    return PollResponse.model_validate(poll)


@router.patch("/polls/{poll_id}/questions/{question_id}", response_model=QuestionResponse)
async def update_question(
    poll_id: UUID,
    question_id: UUID,
    data: QuestionUpdate,
    current_user: CurrentUserDep,
    service: PollServiceDep,
):
    question = ok_or_raise(
        await service.update_question(
            poll_id,
            question_id,
            current_user.id,
            text=data.text,
            details=data.details,
            question_type=data.question_type,
        )
    )
    return QuestionResponse.model_validate(question)


@router.delete("/polls/{poll_id}/questions/{question_id}", response_model=QuestionResponse)
async def delete_question(
    poll_id: UUID, question_id: UUID, current_user: CurrentUserDep, service: PollServiceDep
):
    """Archive a question together with its place on the ballot."""
    question = ok_or_raise(await service.delete_question(poll_id, question_id, current_user.id))
    return QuestionResponse.model_validate(question)


@router.patch(
    "/polls/{poll_id}/questions/{question_id}/answers/{answer_id}",
    response_model=AnswerResponse,
)
async def update_answer(
    poll_id: UUID,
    question_id: UUID,
    answer_id: UUID,
    data: AnswerUpdate,
    current_user: CurrentUserDep,
    service: PollServiceDep,
):
    answer = ok_or_raise(
        await service.update_answer(
            poll_id, question_id, answer_id, current_user.id, text=data.text, order=data.order
        )
    )
    return AnswerResponse.model_validate(answer)


@router.delete(
    "/polls/{poll_id}/questions/{question_id}/answers/{answer_id}",
    response_model=AnswerResponse,
)
async def delete_answer(
    poll_id: UUID,
    question_id: UUID,
    answer_id: UUID,
    current_user: CurrentUserDep,
    service: PollServiceDep,
):
    answer = ok_or_raise(
        await service.delete_answer(poll_id, question_id, answer_id, current_user.id)
    )
    return AnswerResponse.model_validate(answer)


# =============================================================================
# LIFECYCLE
# =============================================================================


@router.post("/polls/{poll_id}/snapshot", response_model=list[ParticipantResponse])
async def take_snapshot(poll_id: UUID, current_user: CurrentUserDep, service: PollServiceDep):
    """Freeze the board roster as participants and move the poll to ready."""
    participants = ok_or_raise(await service.take_snapshot(poll_id, current_user.id))
    return [ParticipantResponse.model_validate(p) for p in participants]


@router.delete("/polls/{poll_id}/snapshot", response_model=PollResponse)
async def discard_snapshot(poll_id: UUID, current_user: CurrentUserDep, service: PollServiceDep):
    poll = ok_or_raise(await service.discard_snapshot(poll_id, current_user.id))
    return PollResponse.model_validate(poll)


@router.post("/polls/{poll_id}/activate", response_model=PollResponse)
async def activate_poll(poll_id: UUID, current_user: CurrentUserDep, service: PollServiceDep):
    poll = ok_or_raise(await service.activate(poll_id, current_user.id))
    return PollResponse.model_validate(poll)


@router.post("/polls/{poll_id}/deactivate", response_model=PollResponse)
async def deactivate_poll(poll_id: UUID, current_user: CurrentUserDep, service: PollServiceDep):
    poll = ok_or_raise(await service.deactivate(poll_id, current_user.id))
    return PollResponse.model_validate(poll)


@router.post("/polls/{poll_id}/finish", response_model=PollResponse)
async def finish_poll(poll_id: UUID, current_user: CurrentUserDep, service: PollServiceDep):
    poll = ok_or_raise(await service.finish(poll_id, current_user.id))
    return PollResponse.model_validate(poll)


# =============================================================================
# PARTICIPANTS
# =============================================================================


@router.get("/polls/{poll_id}/participants", response_model=list[ParticipantResponse])
async def list_participants(poll_id: UUID, current_user: CurrentUserDep, service: PollServiceDep):
    participants = ok_or_raise(await service.list_participants(poll_id, current_user.id))
    return [ParticipantResponse.model_validate(p) for p in participants]


@router.patch("/polls/{poll_id}/participants/{participant_id}", response_model=ParticipantResponse)
async def update_participant_weight(
    poll_id: UUID,
    participant_id: UUID,
    data: WeightUpdate,
    current_user: CurrentUserDep,
    service: PollServiceDep,
):
    participant = ok_or_raise(
        await service.update_participant_weight(
            poll_id, participant_id, data.weight, current_user.id, reason=data.reason
        )
    )
    return ParticipantResponse.model_validate(participant)


@router.delete(
    "/polls/{poll_id}/participants/{participant_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def remove_participant(
    poll_id: UUID,
    participant_id: UUID,
    current_user: CurrentUserDep,
    service: PollServiceDep,
):
    ok_or_raise(await service.remove_participant(poll_id, participant_id, current_user.id))


@router.get("/polls/{poll_id}/weight-history", response_model=list[WeightChangeResponse])
async def get_weight_history(
    poll_id: UUID, current_user: CurrentUserDep, service: PollServiceDep
):
    """Participant weight changes, newest first."""
    changes = ok_or_raise(await service.get_weight_history(poll_id, current_user.id))
    return [WeightChangeResponse.model_validate(c) for c in changes]


# =============================================================================
# VOTING
# =============================================================================


@router.post("/polls/{poll_id}/drafts", response_model=DraftResponse)
async def submit_draft(
    poll_id: UUID,
    data: DraftSubmit,
    current_user: CurrentUserDep,
    service: VotingServiceDep,
):
    """Select an answer, or unselect it with ``remove``."""
    draft = ok_or_raise(
        await service.submit_draft(
            poll_id, data.question_id, data.answer_id, current_user.id, remove=data.remove
        )
    )
    return DraftResponse.model_validate(draft)


@router.post(
    "/polls/{poll_id}/votes",
    response_model=list[VoteResponse],
    status_code=status.HTTP_201_CREATED,
)
async def finish_voting(poll_id: UUID, current_user: CurrentUserDep, service: VotingServiceDep):
    """Submit every draft of the current user as final votes."""
    votes = ok_or_raise(await service.finish_voting(poll_id, current_user.id))
    return [VoteResponse.model_validate(v) for v in votes]


@router.get("/polls/{poll_id}/progress", response_model=VotingProgressResponse)
async def get_voting_progress(
    poll_id: UUID, current_user: CurrentUserDep, service: VotingServiceDep
):
    progress = ok_or_raise(await service.get_voting_progress(poll_id, current_user.id))
    return VotingProgressResponse.model_validate(progress)
