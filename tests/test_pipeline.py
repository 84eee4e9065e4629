"""Tests for stage transitions and the optimistic stage board."""

import asyncio

import pytest
from unittest.mock import patch, AsyncMock
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from leadflow.core.exceptions import StaleStageTransition
from leadflow.models.client import PipelineStage
from leadflow.models.pipeline_event import EventType, PipelineEvent
from leadflow.models.project_intake import KanbanStage
from leadflow.services import leads, pipeline
from leadflow.services.stage_board import StageBoard


async def _stage_events(db):
    result = await db.execute(select(PipelineEvent).where(PipelineEvent.type == EventType.STAGE_CHANGED))
    return result.scalars().all()


@pytest.mark.asyncio
async def test_move_client_any_to_any(db, converted_client):
    move = await pipeline.move_client(db, converted_client.id, PipelineStage.LAUNCHED)
    assert (move.previous_stage, move.new_stage, move.changed) == ("lead", "launched", True)

    move = await pipeline.move_client(db, converted_client.id, PipelineStage.LEAD)
    assert move.previous_stage == "launched"
    assert move.new_stage == "lead"
    assert len(await _stage_events(db)) == 2


@pytest.mark.asyncio
async def test_same_stage_move_is_noop(db, converted_client):
    move = await pipeline.move_client(db, converted_client.id, PipelineStage.LEAD)
    assert move.changed is False
    assert await _stage_events(db) == []


@pytest.mark.asyncio
async def test_intake_starts_new_and_moves_freely(db):
    _, intake = await leads.submit(db, "ai_intake", {"name": "K", "email": "k@x.com", "fit": "good"})
    assert intake.kanban_stage == KanbanStage.NEW

    move = await pipeline.move_intake(db, intake.id, KanbanStage.DONE)
    assert move.new_stage == "done"
    move = await pipeline.move_intake(db, intake.id, KanbanStage.NEEDS_CONTENT)
    assert move.previous_stage == "done"


@pytest.mark.asyncio
async def test_failed_commit_raises_stale_transition(db, converted_client):
    client_id = converted_client.id
    with patch.object(db, "commit", new_callable=AsyncMock, side_effect=OperationalError("UPDATE", {}, Exception("locked"))):
        with pytest.raises(StaleStageTransition) as exc_info:
            await pipeline.move_client(db, client_id, PipelineStage.BUILD)

    assert exc_info.value.last_known_stage == "lead"
    assert exc_info.value.details["entity_id"] == str(client_id)
    client = await pipeline.get_client(db, client_id)
    assert client.pipeline_stage == PipelineStage.LEAD


@pytest.mark.asyncio
async def test_pipeline_board_groups_by_stage(db, converted_client):
    await pipeline.move_client(db, converted_client.id, PipelineStage.PROPOSAL)
    board = await pipeline.pipeline_board(db)
    assert set(board) == set(PipelineStage)
    assert [c.id for c in board[PipelineStage.PROPOSAL]] == [converted_client.id]
    assert board[PipelineStage.LEAD] == []


@pytest.mark.asyncio
async def test_board_applies_move_before_commit_returns():
    seen = []
    gate = asyncio.Event()

    async def commit(entity_id, stage):
        seen.append(board.stage_of(entity_id))
        await gate.wait()

    board = StageBoard(commit)
    board.load("c1", "lead")
    task = asyncio.create_task(board.move("c1", "proposal"))
    await asyncio.sleep(0)
    assert board.stage_of("c1") == "proposal"
    assert board.confirmed_stage_of("c1") == "lead"
    gate.set()
    result = await task

    assert seen == ["proposal"]
    assert result.ok is True
    assert board.confirmed_stage_of("c1") == "proposal"


@pytest.mark.asyncio
async def test_board_reverts_on_failed_commit():
    results = []

    async def commit(entity_id, stage):
        raise StaleStageTransition("nope", entity_id=entity_id, last_known_stage="lead")

    board = StageBoard(commit, on_result=results.append)
    board.load("c1", "lead")
    result = await board.move("c1", "build")

    assert result.ok is False
    assert board.stage_of("c1") == "lead"
    assert results == [result]
    assert isinstance(result.error, StaleStageTransition)


@pytest.mark.asyncio
async def test_board_same_stage_skips_commit():
    commit = AsyncMock()
    board = StageBoard(commit)
    board.load("c1", "lead")
    result = await board.move("c1", "lead")
    assert result.ok is True
    commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_board_last_commit_wins():
    """Two drops on one card: the move whose commit lands last is what sticks."""
    first_gate = asyncio.Event()

    async def commit(entity_id, stage):
        if stage == "proposal":
            await first_gate.wait()

    board = StageBoard(commit)
    board.load("c1", "lead")
    first = asyncio.create_task(board.move("c1", "proposal"))
    await asyncio.sleep(0)
    second = await board.move("c1", "build")
    assert second.ok is True
    assert board.confirmed_stage_of("c1") == "build"
    # The earlier drop is still in flight and will land after this one
    assert board.is_pending("c1")
    assert board.stage_of("c1") == "proposal"

    first_gate.set()
    await first
    assert board.confirmed_stage_of("c1") == "proposal"
    assert board.stage_of("c1") == "proposal"


@pytest.mark.asyncio
async def test_board_failure_shows_move_still_in_flight():
    second_gate = asyncio.Event()

    async def commit(entity_id, stage):
        if stage == "proposal":
            raise StaleStageTransition("stale", entity_id=entity_id)
        await second_gate.wait()

    board = StageBoard(commit)
    board.load("c1", "lead")
    second = asyncio.create_task(board.move("c1", "build"))
    await asyncio.sleep(0)
    failed = await board.move("c1", "proposal")

    assert failed.ok is False
    assert board.stage_of("c1") == "build"
    assert board.confirmed_stage_of("c1") == "lead"
    second_gate.set()
    await second
    assert board.stage_of("c1") == "build"
    assert board.confirmed_stage_of("c1") == "build"


@pytest.mark.asyncio
async def test_board_unknown_entity():
    board = StageBoard(AsyncMock())
    with pytest.raises(KeyError):
        await board.move("missing", "lead")
