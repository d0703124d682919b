"""
Polls: editing, lifecycle and voting.

PollService is used by organization admins to build a poll and move it
through its states. VotingService is used by participants to stage drafts
and turn them into weighted votes.
"""

import logging
from collections import Counter
from datetime import datetime
from uuid import UUID

from ..domain.boards import Board
from ..domain.errors import NotFoundError, ValidationError
from ..domain.polls import (
    Answer,
    Poll,
    PollErrors,
    PollParticipant,
    Question,
    QuestionType,
    Vote,
    VoteDraft,
    VotingProgress,
    WeightChange,
)
from ..domain.ports import (
    BoardRepository,
    DraftRepository,
    ParticipantRepository,
    PollRepository,
    TransactionManager,
    VoteRepository,
    WeightHistoryRepository,
)
from ..domain.result import use_case
from .access import AdminPolicy

logger = logging.getLogger(__name__)


async def _get_poll_or_raise(polls: PollRepository, poll_id: UUID) -> Poll:
    poll = await polls.find_by_id(poll_id)
    if poll is None:
        raise NotFoundError("Poll", poll_id, PollErrors.NOT_FOUND)
    return poll


class PollService:
    def __init__(
        self,
        polls: PollRepository,
        boards: BoardRepository,
        participants: ParticipantRepository,
        drafts: DraftRepository,
        votes: VoteRepository,
        weight_history: WeightHistoryRepository,
        policy: AdminPolicy,
        transactions: TransactionManager,
    ):
        self._polls = polls
        self._boards = boards
        self._participants = participants
        self._drafts = drafts
        self._votes = votes
        self._weight_history = weight_history
        self._policy = policy
        self._transactions = transactions

    async def _get_board_or_raise(self, board_id: UUID) -> Board:
        board = await self._boards.find_by_id(board_id)
        if board is None:
            raise NotFoundError("Board", board_id, PollErrors.BOARD_NOT_FOUND)
        return board

    async def _get_managed_poll(self, poll_id: UUID, admin_user_id: UUID) -> Poll:
        poll = await _get_poll_or_raise(self._polls, poll_id)
        board = await self._get_board_or_raise(poll.board_id)
        await self._policy.ensure_admin(admin_user_id, board.organization_id)
        return poll

    # =========================================================================
    # EDITING
    # =========================================================================

    @use_case
    async def create_poll(
        self,
        board_id: UUID,
        admin_user_id: UUID,
        title: str,
        description: str,
        start_date: datetime,
        end_date: datetime,
    ) -> Poll:
        board = await self._get_board_or_raise(board_id)
        await self._policy.ensure_admin(admin_user_id, board.organization_id)

        poll = Poll.create(title, description, board_id, admin_user_id, start_date, end_date)
        poll = await self._polls.save(poll)
        logger.info("Poll %s created on board %s", poll.id, board_id)
        return poll

    @use_case
    async def get_poll(self, poll_id: UUID) -> Poll:
        return await _get_poll_or_raise(self._polls, poll_id)

    @use_case
    async def add_question(
        self,
        poll_id: UUID,
        admin_user_id: UUID,
        text: str,
        question_type: QuestionType | str,
        page: int = 1,
        order: int | None = None,
        details: str | None = None,
    ) -> Question:
        """Append a question; without an explicit order it goes last on its page."""
        poll = await self._get_managed_poll(poll_id, admin_user_id)
        if order is None:
            order = sum(1 for q in poll.active_questions() if q.page == page)

        question = Question.create(poll.id, text, question_type, page, order, details)
        poll.add_question(question)
        await self._polls.save(poll)
        return question

    @use_case
    async def add_answer(
        self,
        poll_id: UUID,
        question_id: UUID,
        admin_user_id: UUID,
        text: str,
        order: int | None = None,
    ) -> Answer:
        poll = await self._get_managed_poll(poll_id, admin_user_id)
        question = poll.get_question(question_id)
        if question is None:
            raise NotFoundError("Question", question_id, PollErrors.QUESTION_NOT_FOUND)
        if order is None:
            order = len(question.active_answers())

        answer = poll.add_answer(question_id, text, order)
        await self._polls.save(poll)
        return answer

    async def _get_editable_poll(self, poll_id: UUID, admin_user_id: UUID) -> Poll:
        poll = await self._get_managed_poll(poll_id, admin_user_id)
        poll.ensure_editable(has_votes=await self._votes.has_votes(poll.id))
        return poll

    @staticmethod
    def _get_question_or_raise(poll: Poll, question_id: UUID) -> Question:
        question = poll.get_question(question_id)
        if question is None:
            raise NotFoundError("Question", question_id, PollErrors.QUESTION_NOT_FOUND)
        return question

    @staticmethod
    def _get_answer_or_raise(question: Question, answer_id: UUID) -> Answer:
        answer = question.get_answer(answer_id)
        if answer is None:
            raise NotFoundError("Answer", answer_id, PollErrors.ANSWER_NOT_FOUND)
        return answer

    @use_case
    async def update_poll(
        self,
        poll_id: UUID,
        admin_user_id: UUID,
        title: str | None = None,
        description: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> Poll:
        """Change title, description or dates before voting starts."""
        poll = await self._get_editable_poll(poll_id, admin_user_id)
        poll.update_details(title, description, start_date, end_date)
        await self._polls.save(poll)
        logger.info("Poll %s updated by %s", poll.id, admin_user_id)
        return poll

    @use_case
    async def update_question(
        self,
        poll_id: UUID,
        question_id: UUID,
        admin_user_id: UUID,
        text: str | None = None,
        details: str | None = None,
        question_type: QuestionType | str | None = None,
    ) -> Question:
        poll = await self._get_editable_poll(poll_id, admin_user_id)
        question = self._get_question_or_raise(poll, question_id)
        question.update(text, details, question_type)
        await self._polls.save(poll)
        return question

    @use_case
    async def delete_question(
        self, poll_id: UUID, question_id: UUID, admin_user_id: UUID
    ) -> Question:
        """Archive a question; it disappears from the ballot but keeps its id."""
        poll = await self._get_editable_poll(poll_id, admin_user_id)
        question = self._get_question_or_raise(poll, question_id)
        question.archive()
        await self._polls.save(poll)
        logger.info("Question %s archived on poll %s", question.id, poll.id)
        return question

    @use_case
    async def update_answer(
        self,
        poll_id: UUID,
        question_id: UUID,
        answer_id: UUID,
        admin_user_id: UUID,
        text: str | None = None,
        order: int | None = None,
    ) -> Answer:
        poll = await self._get_editable_poll(poll_id, admin_user_id)
        answer = self._get_answer_or_raise(self._get_question_or_raise(poll, question_id), answer_id)
        answer.update(text, order)
        await self._polls.save(poll)
        return answer

    @use_case
    async def delete_answer(
        self, poll_id: UUID, question_id: UUID, answer_id: UUID, admin_user_id: UUID
    ) -> Answer:
        poll = await self._get_editable_poll(poll_id, admin_user_id)
        answer = self._get_answer_or_raise(self._get_question_or_raise(poll, question_id), answer_id)
        answer.archive()
        await self._polls.save(poll)
        logger.info("Answer %s archived on poll %s", answer.id, poll.id)
        return answer

    @use_case
    async def update_question_order(
        self,
        poll_id: UUID,
        admin_user_id: UUID,
        positions: list[tuple[UUID, int, int]],
    ) -> Poll:
        """Move questions to new (page, order) slots. Allowed until the poll finishes."""
        poll = await self._get_managed_poll(poll_id, admin_user_id)
        poll.reorder_questions(positions)
        await self._polls.save(poll)
        return poll

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @use_case
    async def take_snapshot(self, poll_id: UUID, admin_user_id: UUID) -> list[PollParticipant]:
        """
        DRAFT -> READY.

        Every current board member becomes a participant with weight 1.0.
        """
        poll = await self._get_managed_poll(poll_id, admin_user_id)
        poll.take_snapshot()

        member_ids = await self._boards.find_member_ids(poll.board_id)
        participants = [PollParticipant.create(poll.id, user_id) for user_id in member_ids]

        async with self._transactions.atomic():
            await self._participants.delete_by_poll(poll.id)
            await self._participants.create_many(participants)
            await self._polls.save(poll)

        logger.info("Poll %s snapshotted with %d participants", poll.id, len(participants))
        return participants

    @use_case
    async def discard_snapshot(self, poll_id: UUID, admin_user_id: UUID) -> Poll:
        """READY -> DRAFT. Only possible while no votes exist."""
        poll = await self._get_managed_poll(poll_id, admin_user_id)
        poll.discard_snapshot(has_votes=await self._votes.has_votes(poll.id))

        async with self._transactions.atomic():
            await self._participants.delete_by_poll(poll.id)
            await self._polls.save(poll)
        return poll

    @use_case
    async def activate(self, poll_id: UUID, admin_user_id: UUID) -> Poll:
        poll = await self._get_managed_poll(poll_id, admin_user_id)
        poll.activate()
        await self._polls.save(poll)
        logger.info("Poll %s activated", poll.id)
        return poll

    @use_case
    async def deactivate(self, poll_id: UUID, admin_user_id: UUID) -> Poll:
        poll = await self._get_managed_poll(poll_id, admin_user_id)
        poll.deactivate()
        await self._polls.save(poll)
        logger.info("Poll %s deactivated", poll.id)
        return poll

    @use_case
    async def finish(self, poll_id: UUID, admin_user_id: UUID) -> Poll:
        """ACTIVE -> FINISHED. Unsubmitted drafts are discarded."""
        poll = await self._get_managed_poll(poll_id, admin_user_id)
        poll.finish()

        async with self._transactions.atomic():
            await self._drafts.delete_by_poll(poll.id)
            await self._polls.save(poll)

        logger.info("Poll %s finished", poll.id)
        return poll

    # =========================================================================
    # PARTICIPANTS
    # =========================================================================

    @use_case
    async def list_participants(self, poll_id: UUID, admin_user_id: UUID) -> list[PollParticipant]:
        poll = await self._get_managed_poll(poll_id, admin_user_id)
        return await self._participants.find_by_poll(poll.id)

    async def _get_modifiable_participant(
        self, poll_id: UUID, participant_id: UUID, admin_user_id: UUID
    ) -> PollParticipant:
        poll = await self._get_managed_poll(poll_id, admin_user_id)
        if not poll.can_modify_participants(await self._votes.has_votes(poll.id)):
            raise ValidationError(
                "Participants can only be changed on a ready poll without votes",
                PollErrors.CANNOT_MODIFY_PARTICIPANTS,
            )

        participant = await self._participants.find_by_id(participant_id)
        if participant is None or participant.poll_id != poll.id:
            raise NotFoundError("Participant", participant_id, PollErrors.PARTICIPANT_NOT_FOUND)
        return participant

    @use_case
    async def update_participant_weight(
        self,
        poll_id: UUID,
        participant_id: UUID,
        weight: float,
        admin_user_id: UUID,
        reason: str | None = None,
    ) -> PollParticipant:
        """Set a participant's weight and record the old and new value."""
        participant = await self._get_modifiable_participant(poll_id, participant_id, admin_user_id)
        change = participant.update_weight(weight, admin_user_id, reason)

        async with self._transactions.atomic():
            await self._participants.update(participant)
            await self._weight_history.create(change)

        logger.info(
            "Participant %s weight %s -> %s", participant.id, change.old_weight, change.new_weight
        )
        return participant

    @use_case
    async def get_weight_history(self, poll_id: UUID, admin_user_id: UUID) -> list[WeightChange]:
        """Weight changes of the poll, newest first."""
        poll = await self._get_managed_poll(poll_id, admin_user_id)
        return await self._weight_history.find_by_poll(poll.id)

    @use_case
    async def remove_participant(
        self, poll_id: UUID, participant_id: UUID, admin_user_id: UUID
    ) -> None:
        participant = await self._get_modifiable_participant(poll_id, participant_id, admin_user_id)
        await self._participants.delete(participant.id)
        logger.info("Participant %s removed from poll %s", participant.id, poll_id)


class VotingService:
    def __init__(
        self,
        polls: PollRepository,
        participants: ParticipantRepository,
        drafts: DraftRepository,
        votes: VoteRepository,
        transactions: TransactionManager,
    ):
        self._polls = polls
        self._participants = participants
        self._drafts = drafts
        self._votes = votes
        self._transactions = transactions

    async def _ensure_can_vote(self, poll: Poll, user_id: UUID) -> PollParticipant:
        poll.ensure_accepting_votes()

        participant = await self._participants.find_by_user(poll.id, user_id)
        if participant is None:
            raise ValidationError("You are not a participant of this poll", PollErrors.NOT_PARTICIPANT)
        if await self._votes.has_user_finished(poll.id, user_id):
            raise ValidationError("You have already voted", PollErrors.ALREADY_VOTED)
        return participant

    @use_case
    async def submit_draft(
        self,
        poll_id: UUID,
        question_id: UUID,
        answer_id: UUID,
        user_id: UUID,
        remove: bool = False,
    ) -> VoteDraft:
        """
        Select (or with ``remove`` unselect) an answer.

        For single-choice questions the new selection replaces the old one.
        """
        poll = await _get_poll_or_raise(self._polls, poll_id)
        await self._ensure_can_vote(poll, user_id)

        question = poll.get_question(question_id)
        if question is None or question.is_archived:
            raise NotFoundError("Question", question_id, PollErrors.QUESTION_NOT_FOUND)
        if answer_id not in {a.id for a in question.active_answers()}:
            raise NotFoundError("Answer", answer_id, PollErrors.ANSWER_NOT_FOUND)

        draft = VoteDraft(poll_id=poll.id, question_id=question_id, answer_id=answer_id, user_id=user_id)
        if remove:
            await self._drafts.delete_by_answer(poll.id, question_id, answer_id, user_id)
            return draft

        if question.is_single_choice:
            await self._drafts.delete_by_question(poll.id, question_id, user_id)
        return await self._drafts.save(draft)

    @use_case
    async def finish_voting(self, poll_id: UUID, user_id: UUID) -> list[Vote]:
        """
        Turn the user's drafts into votes.

        Flow:
        1. Every active question needs a draft
        2. Single-choice questions need exactly one
        3. Votes carry the participant's weight; drafts are deleted
        """
        poll = await _get_poll_or_raise(self._polls, poll_id)
        participant = await self._ensure_can_vote(poll, user_id)

        drafts = await self._drafts.find_user_drafts(poll.id, user_id)
        questions = poll.active_questions()
        per_question = Counter(draft.question_id for draft in drafts)

        if any(per_question[question.id] == 0 for question in questions):
            raise ValidationError(
                "Every question must be answered", PollErrors.MUST_ANSWER_ALL_QUESTIONS
            )
        for question in questions:
            if question.is_single_choice and per_question[question.id] > 1:
                raise ValidationError(
                    "Single-choice questions take exactly one answer",
                    PollErrors.SINGLE_CHOICE_MULTIPLE_ANSWERS,
                )

        active_ids = {question.id for question in questions}
        votes = [
            Vote.from_draft(draft, participant.user_weight)
            for draft in drafts
            if draft.question_id in active_ids
        ]

        async with self._transactions.atomic():
            await self._votes.create_many(votes)
            await self._drafts.delete_user_drafts(poll.id, user_id)

        logger.info("User %s finished voting in poll %s", user_id, poll.id)
        return votes

    @use_case
    async def get_voting_progress(self, poll_id: UUID, user_id: UUID) -> VotingProgress:
        poll = await _get_poll_or_raise(self._polls, poll_id)
        return VotingProgress(
            drafts=await self._drafts.find_user_drafts(poll.id, user_id),
            has_finished=await self._votes.has_user_finished(poll.id, user_id),
        )
