import logging
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql.expression import delete
from fastapi import HTTPException, status
from simulai.db.models.conversation import Conversation, SessionState

logger = logging.getLogger(__name__)

#SH: Save a finished avatar session. The caller's in-flight session state is cleared in the same commit
async def save_conversation(
    db: AsyncSession,
    scenario_id: int,
    user_id: int,
    conversation: list,
    facial_expressions: list,
    elapsed_time: float,
) -> Conversation:
    db_conversation = Conversation(
        scenario_id=scenario_id,
        user_id=user_id,
        conversation=conversation,
        facial_expressions=facial_expressions,
        elapsed_time=max(0.0, float(elapsed_time or 0)),
    )
    db.add(db_conversation)
    try:
        await db.execute(
            delete(SessionState).where(
                (SessionState.scenario_id == scenario_id) & (SessionState.user_id == user_id)
            )
        )
        await db.commit()
        await db.refresh(db_conversation)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error saving conversation for scenario {scenario_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="RV01: An error occurred while saving the conversation"
        )
    return db_conversation

async def get_conversations(
    db: AsyncSession,
    scenario_id: Optional[int] = None,
    user_id: Optional[int] = None,
    conversation_ids: Optional[List[int]] = None,
) -> List[Conversation]:
    query = select(Conversation).order_by(Conversation.created_at, Conversation.id)
    if scenario_id is not None:
        query = query.where(Conversation.scenario_id == scenario_id)
    if user_id is not None:
        query = query.where(Conversation.user_id == user_id)
    if conversation_ids is not None:
        query = query.where(Conversation.id.in_(conversation_ids))
    result = await db.execute(query)
    return result.scalars().all()

async def get_conversation(db: AsyncSession, scenario_id: int, conversation_id: int) -> Conversation | None:
    result = await db.execute(
        select(Conversation).where(
            (Conversation.id == conversation_id) & (Conversation.scenario_id == scenario_id)
        )
    )
    return result.scalars().first()

async def get_latest_conversation(db: AsyncSession, scenario_id: int, user_id: Optional[int] = None) -> Conversation | None:
    query = (
        select(Conversation)
        .where(Conversation.scenario_id == scenario_id)
        .order_by(Conversation.created_at.desc(), Conversation.id.desc())
        .limit(1)
    )
    if user_id is not None:
        query = query.where(Conversation.user_id == user_id)
    result = await db.execute(query)
    return result.scalars().first()

#SH: Total seconds and number of saved conversations of a scenario
async def get_elapsed_totals(db: AsyncSession, scenario_id: int) -> tuple[float, int]:
    result = await db.execute(
        select(func.coalesce(func.sum(Conversation.elapsed_time), 0), func.count(Conversation.id))
        .where(Conversation.scenario_id == scenario_id)
    )
    total, count = result.one()
    return float(total or 0), int(count or 0)

async def get_session_state(db: AsyncSession, scenario_id: int, user_id: int) -> SessionState | None:
    result = await db.execute(
        select(SessionState).where(
            (SessionState.scenario_id == scenario_id) & (SessionState.user_id == user_id)
        )
    )
    return result.scalars().first()

async def save_session_state(db: AsyncSession, scenario_id: int, user_id: int, elapsed_time: float) -> SessionState:
    state = await get_session_state(db, scenario_id, user_id)
    if state is None:
        state = SessionState(scenario_id=scenario_id, user_id=user_id)
        db.add(state)
    state.elapsed_time = max(0.0, float(elapsed_time))
    await db.commit()
    await db.refresh(state)
    return state

async def reset_timer(db: AsyncSession, scenario_id: int) -> int:
    try:
        result = await db.execute(delete(Conversation).where(Conversation.scenario_id == scenario_id))
        await db.execute(delete(SessionState).where(SessionState.scenario_id == scenario_id))
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error resetting timer of scenario {scenario_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="RV02: An error occurred while resetting the timer"
        )
    logger.info(f"Timer reset for scenario {scenario_id}: {result.rowcount} conversations removed")
    return result.rowcount
