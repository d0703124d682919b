"""SQLAlchemy poll, participant, draft and vote repositories."""

from collections import defaultdict
from uuid import UUID

from sqlalchemy import delete, exists, select

from .. import models
from ..domain.polls import (
    Answer,
    Poll,
    PollParticipant,
    Question,
    Vote,
    VoteDraft,
    WeightChange,
)
from ..domain.ports import (
    DraftRepository,
    ParticipantRepository,
    PollRepository,
    VoteRepository,
    WeightHistoryRepository,
)
from .base import SqlAlchemyRepository, as_utc


def _to_answer(row: models.Answer) -> Answer:
    return Answer(
        id=row.id,
        question_id=row.question_id,
        text=row.text,
        order=row.order,
        created_at=row.created_at,
        archived_at=row.archived_at,
    )


def _to_participant(row: models.PollParticipant) -> PollParticipant:
    return PollParticipant(
        id=row.id,
        poll_id=row.poll_id,
        user_id=row.user_id,
        user_weight=row.user_weight,
        snapshot_at=row.snapshot_at,
    )


def _to_weight_change(row: models.ParticipantWeightHistory) -> WeightChange:
    return WeightChange(
        id=row.id,
        participant_id=row.participant_id,
        poll_id=row.poll_id,
        user_id=row.user_id,
        old_weight=row.old_weight,
        new_weight=row.new_weight,
        changed_by_id=row.changed_by_id,
        reason=row.reason,
        changed_at=as_utc(row.changed_at),
    )


def _to_draft(row: models.VoteDraft) -> VoteDraft:
    return VoteDraft(
        poll_id=row.poll_id,
        question_id=row.question_id,
        answer_id=row.answer_id,
        user_id=row.user_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SqlAlchemyPollRepository(SqlAlchemyRepository, PollRepository):
    async def find_by_id(self, poll_id: UUID) -> Poll | None:
        row = await self._session.get(models.Poll, poll_id)
        if row is None:
            return None

        question_rows = (
            await self._session.execute(
                select(models.Question)
                .where(models.Question.poll_id == poll_id)
                .order_by(models.Question.page, models.Question.order)
            )
        ).scalars().all()

        answers: dict[UUID, list[Answer]] = defaultdict(list)
        if question_rows:
            answer_rows = await self._session.execute(
                select(models.Answer)
                .where(models.Answer.question_id.in_([q.id for q in question_rows]))
                .order_by(models.Answer.order)
            )
            for answer_row in answer_rows.scalars():
                answers[answer_row.question_id].append(_to_answer(answer_row))

        questions = [
            Question(
                id=q.id,
                poll_id=q.poll_id,
                text=q.text,
                details=q.details,
                page=q.page,
                order=q.order,
                question_type=q.question_type,
                created_at=q.created_at,
                archived_at=q.archived_at,
                answers=answers[q.id],
            )
            for q in question_rows
        ]

        return Poll(
            id=row.id,
            title=row.title,
            description=row.description,
            board_id=row.board_id,
            created_by_id=row.created_by_id,
            start_date=as_utc(row.start_date),
            end_date=as_utc(row.end_date),
            state=row.state,
            weight_criteria=row.weight_criteria,
            created_at=row.created_at,
            archived_at=row.archived_at,
            questions=questions,
        )

    async def save(self, poll: Poll) -> Poll:
        await self._session.merge(
            models.Poll(
                id=poll.id,
                title=poll.title,
                description=poll.description,
                board_id=poll.board_id,
                created_by_id=poll.created_by_id,
                start_date=poll.start_date,
                end_date=poll.end_date,
                state=poll.state,
                weight_criteria=poll.weight_criteria,
                created_at=poll.created_at,
                archived_at=poll.archived_at,
            )
        )
        for question in poll.questions:
            await self._session.merge(
                models.Question(
                    id=question.id,
                    poll_id=poll.id,
                    text=question.text,
                    details=question.details,
                    page=question.page,
                    order=question.order,
                    question_type=question.question_type,
                    created_at=question.created_at,
                    archived_at=question.archived_at,
                )
            )
            for answer in question.answers:
                await self._session.merge(
                    models.Answer(
                        id=answer.id,
                        question_id=question.id,
                        text=answer.text,
                        order=answer.order,
                        created_at=answer.created_at,
                        archived_at=answer.archived_at,
                    )
                )
        await self._session.flush()
        return poll


class SqlAlchemyParticipantRepository(SqlAlchemyRepository, ParticipantRepository):
    async def create_many(self, participants: list[PollParticipant]) -> None:
        self._session.add_all(
            models.PollParticipant(
                id=p.id,
                poll_id=p.poll_id,
                user_id=p.user_id,
                user_weight=p.user_weight,
                snapshot_at=p.snapshot_at,
            )
            for p in participants
        )
        await self._session.flush()

    async def find_by_id(self, participant_id: UUID) -> PollParticipant | None:
        row = await self._session.get(models.PollParticipant, participant_id)
        return _to_participant(row) if row else None

    async def find_by_poll(self, poll_id: UUID) -> list[PollParticipant]:
        result = await self._session.execute(
            select(models.PollParticipant).where(models.PollParticipant.poll_id == poll_id)
        )
        return [_to_participant(row) for row in result.scalars()]

    async def find_by_user(self, poll_id: UUID, user_id: UUID) -> PollParticipant | None:
        result = await self._session.execute(
            select(models.PollParticipant).where(
                models.PollParticipant.poll_id == poll_id,
                models.PollParticipant.user_id == user_id,
            )
        )
        row = result.scalar_one_or_none()
        return _to_participant(row) if row else None

    async def update(self, participant: PollParticipant) -> None:
        row = await self._session.get(models.PollParticipant, participant.id)
        row.user_weight = participant.user_weight
        await self._session.flush()

    async def delete(self, participant_id: UUID) -> None:
        await self._session.execute(
            delete(models.PollParticipant).where(models.PollParticipant.id == participant_id)
        )

    async def delete_by_poll(self, poll_id: UUID) -> None:
        await self._session.execute(
            delete(models.PollParticipant).where(models.PollParticipant.poll_id == poll_id)
        )


class SqlAlchemyDraftRepository(SqlAlchemyRepository, DraftRepository):
    async def save(self, draft: VoteDraft) -> VoteDraft:
        row = await self._session.merge(
            models.VoteDraft(
                poll_id=draft.poll_id,
                question_id=draft.question_id,
                answer_id=draft.answer_id,
                user_id=draft.user_id,
                created_at=draft.created_at,
                updated_at=draft.updated_at,
            )
        )
        await self._session.flush()
        return _to_draft(row)

    async def find_user_drafts(self, poll_id: UUID, user_id: UUID) -> list[VoteDraft]:
        result = await self._session.execute(
            select(models.VoteDraft)
            .where(models.VoteDraft.poll_id == poll_id, models.VoteDraft.user_id == user_id)
            .order_by(models.VoteDraft.created_at)
        )
        return [_to_draft(row) for row in result.scalars()]

    async def delete_by_answer(
        self, poll_id: UUID, question_id: UUID, answer_id: UUID, user_id: UUID
    ) -> None:
        await self._session.execute(
            delete(models.VoteDraft).where(
                models.VoteDraft.poll_id == poll_id,
                models.VoteDraft.question_id == question_id,
                models.VoteDraft.answer_id == answer_id,
                models.VoteDraft.user_id == user_id,
            )
        )

    async def delete_by_question(self, poll_id: UUID, question_id: UUID, user_id: UUID) -> None:
        await self._session.execute(
            delete(models.VoteDraft).where(
                models.VoteDraft.poll_id == poll_id,
                models.VoteDraft.question_id == question_id,
                models.VoteDraft.user_id == user_id,
            )
        )

    async def delete_user_drafts(self, poll_id: UUID, user_id: UUID) -> None:
        await self._session.execute(
            delete(models.VoteDraft).where(
                models.VoteDraft.poll_id == poll_id, models.VoteDraft.user_id == user_id
            )
        )

    async def delete_by_poll(self, poll_id: UUID) -> None:
        await self._session.execute(delete(models.VoteDraft).where(models.VoteDraft.poll_id == poll_id))


class SqlAlchemyVoteRepository(SqlAlchemyRepository, VoteRepository):
    async def create_many(self, votes: list[Vote]) -> None:
        self._session.add_all(
            models.Vote(
                poll_id=vote.poll_id,
                question_id=vote.question_id,
                answer_id=vote.answer_id,
                user_id=vote.user_id,
                user_weight=vote.user_weight,
                created_at=vote.created_at,
            )
            for vote in votes
        )
        await self._session.flush()

    async def has_votes(self, poll_id: UUID) -> bool:
        result = await self._session.execute(select(exists().where(models.Vote.poll_id == poll_id)))
        return bool(result.scalar())

    async def has_user_finished(self, poll_id: UUID, user_id: UUID) -> bool:
        result = await self._session.execute(
            select(exists().where(models.Vote.poll_id == poll_id, models.Vote.user_id == user_id))
        )
        return bool(result.scalar())


class SqlAlchemyWeightHistoryRepository(SqlAlchemyRepository, WeightHistoryRepository):
    async def create(self, change: WeightChange) -> None:
        self._session.add(
            models.ParticipantWeightHistory(
                id=change.id,
                participant_id=change.participant_id,
                poll_id=change.poll_id,
                user_id=change.user_id,
                old_weight=change.old_weight,
                new_weight=change.new_weight,
                changed_by_id=change.changed_by_id,
                reason=change.reason,
                changed_at=change.changed_at,
            )
        )
        await self._session.flush()

    async def find_by_poll(self, poll_id: UUID) -> list[WeightChange]:
        result = await self._session.execute(
            select(models.ParticipantWeightHistory)
            .where(models.ParticipantWeightHistory.poll_id == poll_id)
            .order_by(models.ParticipantWeightHistory.changed_at.desc())
        )
        return [_to_weight_change(row) for row in result.scalars()]
