"""
Tests for poll lifecycle and voting.

These tests verify:
1. LIFECYCLE: draft -> ready -> active -> finished with snapshot rules
2. DRAFTS: single-choice keeps only the latest selection
3. VOTES: finishing turns drafts into votes carrying the weight snapshot
4. EDITING: details, questions and answers change only before voting
5. PARTICIPANTS: weight changes are recorded, removal only while ready
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from boardroom.domain import Err, NotFoundError, Ok, UnauthorizedError
from boardroom.domain.polls import PollErrors, PollState, QuestionType

START = datetime(2024, 5, 1, tzinfo=timezone.utc)


@pytest.fixture
def board(db, admin):
    organization = db.add_organization("Acme", admin_id=admin.id)
    return db.add_board(organization.id, "Council")


@pytest.fixture
def voters(db, board, member):
    second = db.add_user(phone_number="+79160000077", first_name="Vera")
    db.add_board_member(board.id, member.id)
    db.add_board_member(board.id, second.id)
    return member, second


@pytest.fixture
async def draft_poll(poll_service, board, admin):
    """A draft poll with one single-choice and one multiple-choice question."""
    poll = (
        await poll_service.create_poll(
            board.id, admin.id, "Budget", "Annual budget", START, START + timedelta(days=7)
        )
    ).unwrap()
    single = (
        await poll_service.add_question(poll.id, admin.id, "Approve?", QuestionType.SINGLE_CHOICE)
    ).unwrap()
    multi = (
        await poll_service.add_question(poll.id, admin.id, "Priorities", "multiple-choice")
    ).unwrap()
    yes = (await poll_service.add_answer(poll.id, single.id, admin.id, "Yes")).unwrap()
    no = (await poll_service.add_answer(poll.id, single.id, admin.id, "No")).unwrap()
    roads = (await poll_service.add_answer(poll.id, multi.id, admin.id, "Roads")).unwrap()
    parks = (await poll_service.add_answer(poll.id, multi.id, admin.id, "Parks")).unwrap()
    return poll, single, multi, (yes, no, roads, parks)


@pytest.fixture
async def active_poll(poll_service, draft_poll, voters, admin):
    poll = draft_poll[0]
    (await poll_service.take_snapshot(poll.id, admin.id)).unwrap()
    (await poll_service.activate(poll.id, admin.id)).unwrap()
    return draft_poll


# =============================================================================
# TEST: LIFECYCLE
# =============================================================================


class TestPollLifecycle:
    async def test_create_requires_admin(self, poll_service, board, member):
        result = await poll_service.create_poll(
            board.id, member.id, "T", "D", START, START + timedelta(days=1)
        )

        assert isinstance(result, Err)
        assert isinstance(result.error, UnauthorizedError)

    async def test_end_before_start(self, poll_service, board, admin):
        result = await poll_service.create_poll(board.id, admin.id, "T", "D", START, START)

        assert result.error.code == PollErrors.INVALID_DATES

    async def test_answers_get_increasing_order(self, draft_poll, db):
        poll, single, _, _ = draft_poll
        stored = db.polls[poll.id].get_question(single.id)
        assert [a.order for a in stored.active_answers()] == [0, 1]

    async def test_snapshot_requires_questions(self, poll_service, board, admin):
        poll = (
            await poll_service.create_poll(board.id, admin.id, "T", "D", START, START + timedelta(days=1))
        ).unwrap()

        result = await poll_service.take_snapshot(poll.id, admin.id)

        assert result.error.code == PollErrors.NO_QUESTIONS

    async def test_snapshot_copies_board_members(self, poll_service, draft_poll, voters, admin, db):
        poll = draft_poll[0]

        result = await poll_service.take_snapshot(poll.id, admin.id)

        assert isinstance(result, Ok)
        assert {p.user_id for p in result.value} == {v.id for v in voters}
        assert all(p.user_weight == 1.0 for p in result.value)
        assert db.polls[poll.id].state == PollState.READY

    async def test_discard_snapshot_removes_participants(self, poll_service, draft_poll, voters, admin, db):
        poll = draft_poll[0]
        await poll_service.take_snapshot(poll.id, admin.id)

        result = await poll_service.discard_snapshot(poll.id, admin.id)

        assert isinstance(result, Ok)
        assert db.polls[poll.id].state == PollState.DRAFT
        assert db.participants == {}

    async def test_questions_locked_once_active(self, poll_service, active_poll, admin):
        poll = active_poll[0]

        result = await poll_service.add_question(poll.id, admin.id, "Late?", QuestionType.SINGLE_CHOICE)

        assert result.error.code == PollErrors.CANNOT_ADD_QUESTION

    async def test_deactivate_and_finish(self, poll_service, active_poll, admin, db):
        poll = active_poll[0]

        assert isinstance(await poll_service.deactivate(poll.id, admin.id), Ok)
        assert db.polls[poll.id].state == PollState.READY
        assert (await poll_service.finish(poll.id, admin.id)).error.code == PollErrors.MUST_BE_ACTIVE

        await poll_service.activate(poll.id, admin.id)
        assert isinstance(await poll_service.finish(poll.id, admin.id), Ok)
        assert db.polls[poll.id].state == PollState.FINISHED

    async def test_weight_update_only_while_ready(self, poll_service, draft_poll, voters, admin, db):
        poll = draft_poll[0]
        participants = (await poll_service.take_snapshot(poll.id, admin.id)).unwrap()
        target = participants[0]

        updated = await poll_service.update_participant_weight(poll.id, target.id, 2.5, admin.id)
        negative = await poll_service.update_participant_weight(poll.id, target.id, -1, admin.id)
        await poll_service.activate(poll.id, admin.id)
        locked = await poll_service.update_participant_weight(poll.id, target.id, 3.0, admin.id)

        assert isinstance(updated, Ok)
        assert negative.error.code == PollErrors.INVALID_WEIGHT
        assert locked.error.code == PollErrors.CANNOT_MODIFY_PARTICIPANTS
        assert db.participants[target.id].user_weight == 2.5


# =============================================================================
# TEST: VOTING
# =============================================================================


class TestVoting:
    async def test_voting_requires_active_poll(self, voting_service, draft_poll, voters):
        poll, single, _, (yes, *_) = draft_poll

        result = await voting_service.submit_draft(poll.id, single.id, yes.id, voters[0].id)

        assert result.error.code == PollErrors.NOT_ACTIVE

    async def test_non_participant_cannot_vote(self, voting_service, active_poll, admin):
        poll, single, _, (yes, *_) = active_poll

        result = await voting_service.submit_draft(poll.id, single.id, yes.id, admin.id)

        assert result.error.code == PollErrors.NOT_PARTICIPANT

    async def test_single_choice_keeps_latest_draft(self, voting_service, active_poll, voters):
        poll, single, _, (yes, no, _, _) = active_poll
        voter = voters[0]

        await voting_service.submit_draft(poll.id, single.id, yes.id, voter.id)
        await voting_service.submit_draft(poll.id, single.id, no.id, voter.id)

        progress = (await voting_service.get_voting_progress(poll.id, voter.id)).unwrap()
        assert [d.answer_id for d in progress.drafts] == [no.id]
        assert not progress.has_finished

    async def test_multiple_choice_select_and_unselect(self, voting_service, active_poll, voters):
        poll, _, multi, (_, _, roads, parks) = active_poll
        voter = voters[0]

        await voting_service.submit_draft(poll.id, multi.id, roads.id, voter.id)
        await voting_service.submit_draft(poll.id, multi.id, parks.id, voter.id)
        await voting_service.submit_draft(poll.id, multi.id, roads.id, voter.id, remove=True)

        progress = (await voting_service.get_voting_progress(poll.id, voter.id)).unwrap()
        assert [d.answer_id for d in progress.drafts] == [parks.id]

    async def test_answer_must_belong_to_question(self, voting_service, active_poll, voters):
        poll, single, _, (_, _, roads, _) = active_poll

        result = await voting_service.submit_draft(poll.id, single.id, roads.id, voters[0].id)

        assert result.error.code == PollErrors.ANSWER_NOT_FOUND

    async def test_finish_requires_every_question(self, voting_service, active_poll, voters):
        poll, single, _, (yes, *_) = active_poll
        voter = voters[0]
        await voting_service.submit_draft(poll.id, single.id, yes.id, voter.id)

        result = await voting_service.finish_voting(poll.id, voter.id)

        assert result.error.code == PollErrors.MUST_ANSWER_ALL_QUESTIONS

    async def test_finish_creates_weighted_votes(
        self, poll_service, voting_service, draft_poll, voters, admin, db
    ):
        poll, single, multi, (yes, _, roads, parks) = draft_poll
        voter = voters[0]
        participants = (await poll_service.take_snapshot(poll.id, admin.id)).unwrap()
        mine = next(p for p in participants if p.user_id == voter.id)
        await poll_service.update_participant_weight(poll.id, mine.id, 3.0, admin.id)
        await poll_service.activate(poll.id, admin.id)

        await voting_service.submit_draft(poll.id, single.id, yes.id, voter.id)
        await voting_service.submit_draft(poll.id, multi.id, roads.id, voter.id)
        await voting_service.submit_draft(poll.id, multi.id, parks.id, voter.id)
        result = await voting_service.finish_voting(poll.id, voter.id)

        assert isinstance(result, Ok)
        assert {v.answer_id for v in result.value} == {yes.id, roads.id, parks.id}
        assert all(v.user_weight == 3.0 for v in db.votes)
        assert db.drafts == {}

        progress = (await voting_service.get_voting_progress(poll.id, voter.id)).unwrap()
        assert progress.has_finished
        again = await voting_service.submit_draft(poll.id, single.id, yes.id, voter.id)
        assert again.error.code == PollErrors.ALREADY_VOTED

    async def test_finished_poll_rejects_drafts(self, poll_service, voting_service, active_poll, voters, admin):
        poll, single, _, (yes, *_) = active_poll
        await poll_service.finish(poll.id, admin.id)

        result = await voting_service.submit_draft(poll.id, single.id, yes.id, voters[0].id)

        assert result.error.code == PollErrors.POLL_FINISHED


# =============================================================================
# TEST: EDITING
# =============================================================================


class TestPollEditing:
    async def test_update_details_keeps_unset_fields(self, poll_service, draft_poll, admin, db):
        poll = draft_poll[0]

        result = await poll_service.update_poll(poll.id, admin.id, title="  Budget 2025 ")

        assert isinstance(result, Ok)
        stored = db.polls[poll.id]
        assert stored.title == "Budget 2025"
        assert stored.description == "Annual budget"
        assert stored.end_date == START + timedelta(days=7)

    async def test_update_dates_checked_against_stored_values(self, poll_service, draft_poll, admin):
        poll = draft_poll[0]

        result = await poll_service.update_poll(
            poll.id, admin.id, start_date=START + timedelta(days=8)
        )

        assert result.error.code == PollErrors.INVALID_DATES

    async def test_update_requires_admin(self, poll_service, draft_poll, member):
        result = await poll_service.update_poll(draft_poll[0].id, member.id, title="Mine")

        assert isinstance(result.error, UnauthorizedError)

    async def test_active_poll_cannot_be_edited(self, poll_service, active_poll, admin):
        poll, single, _, (yes, *_) = active_poll

        assert (
            await poll_service.update_poll(poll.id, admin.id, title="Late")
        ).error.code == PollErrors.CANNOT_MODIFY_ACTIVE
        assert (
            await poll_service.delete_answer(poll.id, single.id, yes.id, admin.id)
        ).error.code == PollErrors.CANNOT_MODIFY_ACTIVE

    async def test_finished_poll_cannot_be_edited(self, poll_service, active_poll, admin):
        poll, single, _, _ = active_poll
        await poll_service.finish(poll.id, admin.id)

        result = await poll_service.update_question(poll.id, single.id, admin.id, text="Changed?")

        assert result.error.code == PollErrors.CANNOT_MODIFY_FINISHED

    async def test_ready_poll_with_votes_cannot_be_edited(
        self, poll_service, voting_service, active_poll, voters, admin
    ):
        poll, single, multi, (yes, _, roads, _) = active_poll
        voter = voters[0]
        await voting_service.submit_draft(poll.id, single.id, yes.id, voter.id)
        await voting_service.submit_draft(poll.id, multi.id, roads.id, voter.id)
        (await voting_service.finish_voting(poll.id, voter.id)).unwrap()
        await poll_service.deactivate(poll.id, admin.id)

        result = await poll_service.update_answer(poll.id, single.id, yes.id, admin.id, text="Aye")

        assert result.error.code == PollErrors.CANNOT_MODIFY_HAS_VOTES

    async def test_update_question(self, poll_service, draft_poll, admin, db):
        poll, _, multi, _ = draft_poll

        result = await poll_service.update_question(
            poll.id,
            multi.id,
            admin.id,
            text="Top priority",
            details="Pick one",
            question_type="single-choice",
        )

        assert isinstance(result, Ok)
        stored = db.polls[poll.id].get_question(multi.id)
        assert stored.text == "Top priority"
        assert stored.details == "Pick one"
        assert stored.question_type == QuestionType.SINGLE_CHOICE

    async def test_empty_details_clear_them(self, poll_service, draft_poll, admin, db):
        poll, single, _, _ = draft_poll
        await poll_service.update_question(poll.id, single.id, admin.id, details="Context")

        await poll_service.update_question(poll.id, single.id, admin.id, details="")

        assert db.polls[poll.id].get_question(single.id).details is None

    async def test_update_question_rejects_unknown_type(self, poll_service, draft_poll, admin):
        poll, single, _, _ = draft_poll

        result = await poll_service.update_question(
            poll.id, single.id, admin.id, question_type="ranking"
        )

        assert result.error.code == PollErrors.QUESTION_INVALID_TYPE

    async def test_unknown_question(self, poll_service, draft_poll, admin):
        result = await poll_service.delete_question(draft_poll[0].id, uuid4(), admin.id)

        assert isinstance(result.error, NotFoundError)
        assert result.error.code == PollErrors.QUESTION_NOT_FOUND

    async def test_delete_question_archives_it(self, poll_service, draft_poll, admin, db):
        poll, single, multi, _ = draft_poll

        result = await poll_service.delete_question(poll.id, single.id, admin.id)
        again = await poll_service.delete_question(poll.id, single.id, admin.id)

        assert isinstance(result, Ok)
        assert [q.id for q in db.polls[poll.id].active_questions()] == [multi.id]
        assert again.error.code == PollErrors.QUESTION_ALREADY_ARCHIVED

    async def test_update_and_delete_answer(self, poll_service, draft_poll, admin, db):
        poll, single, _, (yes, no, _, _) = draft_poll

        updated = await poll_service.update_answer(
            poll.id, single.id, yes.id, admin.id, text="Approve", order=5
        )
        deleted = await poll_service.delete_answer(poll.id, single.id, no.id, admin.id)

        assert isinstance(updated, Ok)
        assert isinstance(deleted, Ok)
        question = db.polls[poll.id].get_question(single.id)
        assert [(a.text, a.order) for a in question.active_answers()] == [("Approve", 5)]

    async def test_answer_must_belong_to_question(self, poll_service, draft_poll, admin):
        poll, single, _, (_, _, roads, _) = draft_poll

        result = await poll_service.update_answer(poll.id, single.id, roads.id, admin.id, text="X")

        assert result.error.code == PollErrors.ANSWER_NOT_FOUND

    async def test_invalid_answer_update_changes_nothing(self, poll_service, draft_poll, admin, db):
        poll, single, _, (yes, *_) = draft_poll

        result = await poll_service.update_answer(
            poll.id, single.id, yes.id, admin.id, text="Approve", order=-1
        )

        assert result.error.code == PollErrors.ANSWER_INVALID_ORDER
        assert db.polls[poll.id].get_question(single.id).get_answer(yes.id).text == "Yes"


class TestQuestionOrder:
    async def test_reorder_moves_questions(self, poll_service, draft_poll, admin, db):
        poll, single, multi, _ = draft_poll

        result = await poll_service.update_question_order(
            poll.id, admin.id, [(single.id, 2, 0), (multi.id, 1, 0)]
        )

        assert isinstance(result, Ok)
        stored = db.polls[poll.id]
        assert (stored.get_question(single.id).page, stored.get_question(single.id).order) == (2, 0)
        assert (stored.get_question(multi.id).page, stored.get_question(multi.id).order) == (1, 0)

    async def test_reorder_allowed_while_active(self, poll_service, active_poll, admin):
        poll, single, _, _ = active_poll

        result = await poll_service.update_question_order(poll.id, admin.id, [(single.id, 1, 3)])

        assert isinstance(result, Ok)

    async def test_reorder_needs_positions(self, poll_service, draft_poll, admin):
        result = await poll_service.update_question_order(draft_poll[0].id, admin.id, [])

        assert result.error.code == PollErrors.NO_UPDATES

    async def test_reorder_is_all_or_nothing(self, poll_service, draft_poll, admin, db):
        poll, single, multi, _ = draft_poll
        before = db.polls[poll.id].get_question(single.id).page

        result = await poll_service.update_question_order(
            poll.id, admin.id, [(single.id, 3, 0), (multi.id, 0, 0)]
        )
        unknown = await poll_service.update_question_order(poll.id, admin.id, [(uuid4(), 1, 0)])

        assert result.error.code == PollErrors.QUESTION_INVALID_PAGE
        assert unknown.error.code == PollErrors.QUESTION_NOT_FOUND
        assert db.polls[poll.id].get_question(single.id).page == before

    async def test_finished_poll_cannot_be_reordered(self, poll_service, active_poll, admin):
        poll, single, _, _ = active_poll
        await poll_service.finish(poll.id, admin.id)

        result = await poll_service.update_question_order(poll.id, admin.id, [(single.id, 1, 0)])

        assert result.error.code == PollErrors.CANNOT_MODIFY_FINISHED


# =============================================================================
# TEST: PARTICIPANTS
# =============================================================================


class TestParticipants:
    @pytest.fixture
    async def ready_poll(self, poll_service, draft_poll, voters, admin):
        poll = draft_poll[0]
        participants = (await poll_service.take_snapshot(poll.id, admin.id)).unwrap()
        return poll, participants

    async def test_weight_change_is_recorded(self, poll_service, ready_poll, admin, db):
        poll, participants = ready_poll
        target = participants[0]

        await poll_service.update_participant_weight(
            poll.id, target.id, 2.5, admin.id, reason="  Holds two shares "
        )
        await poll_service.update_participant_weight(poll.id, target.id, 4.0, admin.id)

        history = (await poll_service.get_weight_history(poll.id, admin.id)).unwrap()
        assert [(c.old_weight, c.new_weight) for c in history] == [(2.5, 4.0), (1.0, 2.5)]
        assert [c.reason for c in history] == [None, "Holds two shares"]
        assert all(c.changed_by_id == admin.id and c.user_id == target.user_id for c in history)

    async def test_rejected_weight_leaves_no_history(self, poll_service, ready_poll, admin, db):
        poll, participants = ready_poll

        result = await poll_service.update_participant_weight(
            poll.id, participants[0].id, 2.0, admin.id, reason="x" * 1001
        )

        assert result.error.code == PollErrors.WEIGHT_REASON_TOO_LONG
        assert db.weight_history == []
        assert db.participants[participants[0].id].user_weight == 1.0

    async def test_weight_history_requires_admin(self, poll_service, ready_poll, member):
        result = await poll_service.get_weight_history(ready_poll[0].id, member.id)

        assert isinstance(result.error, UnauthorizedError)

    async def test_remove_participant(self, poll_service, ready_poll, admin, db):
        poll, participants = ready_poll
        removed, kept = participants

        result = await poll_service.remove_participant(poll.id, removed.id, admin.id)

        assert isinstance(result, Ok)
        assert set(db.participants) == {kept.id}
        assert "participants.delete" in db.writes

    async def test_remove_unknown_participant(self, poll_service, ready_poll, admin):
        result = await poll_service.remove_participant(ready_poll[0].id, uuid4(), admin.id)

        assert isinstance(result.error, NotFoundError)
        assert result.error.code == PollErrors.PARTICIPANT_NOT_FOUND

    async def test_draft_poll_participants_cannot_be_removed(
        self, poll_service, ready_poll, board, admin
    ):
        poll, participants = ready_poll
        other = (
            await poll_service.create_poll(
                board.id, admin.id, "Other", "Other poll", START, START + timedelta(days=1)
            )
        ).unwrap()

        result = await poll_service.remove_participant(other.id, participants[0].id, admin.id)

        assert result.error.code == PollErrors.CANNOT_MODIFY_PARTICIPANTS

    async def test_participants_locked_once_active(self, poll_service, ready_poll, admin, db):
        poll, participants = ready_poll
        await poll_service.activate(poll.id, admin.id)

        result = await poll_service.remove_participant(poll.id, participants[0].id, admin.id)

        assert result.error.code == PollErrors.CANNOT_MODIFY_PARTICIPANTS
        assert participants[0].id in db.participants
