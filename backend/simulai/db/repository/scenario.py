import logging
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql.expression import delete
from fastapi import HTTPException, status
from simulai.db.models.scenario import Scenario
from simulai.db.models.conversation import Conversation, SessionState
from simulai.db.models.report import Report

logger = logging.getLogger(__name__)

# MJ: This file will contain all the database operations related to the Scenario model

async def get_scenarios(db: AsyncSession, created_by: Optional[int] = None) -> List[Scenario]:
    query = select(Scenario).order_by(Scenario.created_at.desc(), Scenario.id.desc())
    if created_by is not None:
        query = query.where(Scenario.user_id_created == created_by)
    result = await db.execute(query)
    return result.scalars().all()

async def get_scenarios_by_user(db: AsyncSession, user_id: int) -> List[Scenario]:
    result = await db.execute(
        select(Scenario)
        .where(Scenario.user_id_assigned == user_id)
        .order_by(Scenario.created_at.desc(), Scenario.id.desc())
    )
    return result.scalars().all()

async def get_scenario(db: AsyncSession, scenario_id: int) -> Scenario | None:
    result = await db.execute(select(Scenario).where(Scenario.id == scenario_id))
    return result.scalars().first()

async def create_scenario(db: AsyncSession, values: dict) -> Scenario:
    scenario = Scenario(**values)
    db.add(scenario)
    try:
        await db.commit()
        await db.refresh(scenario)
        logger.info(f"Scenario created: {scenario.id} ({scenario.title})")
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error creating scenario: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="RS01: An error occurred while creating the scenario"
        )
    return scenario

async def update_scenario(db: AsyncSession, scenario: Scenario, values: dict) -> Scenario:
    for key, value in values.items():
        setattr(scenario, key, value)
    try:
        await db.commit()
        await db.refresh(scenario)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error updating scenario {scenario.id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="RS02: An error occurred while updating the scenario"
        )
    return scenario

#SH: Conversations, reports and session states go with the scenario
async def delete_scenarios(db: AsyncSession, scenario_ids: List[int]) -> int:
    if not scenario_ids:
        return 0
    try:
        await db.execute(delete(Report).where(Report.scenario_id.in_(scenario_ids)))
        await db.execute(delete(Conversation).where(Conversation.scenario_id.in_(scenario_ids)))
        await db.execute(delete(SessionState).where(SessionState.scenario_id.in_(scenario_ids)))
        result = await db.execute(delete(Scenario).where(Scenario.id.in_(scenario_ids)))
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error deleting scenarios {scenario_ids}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="RS03: An error occurred while deleting scenarios"
        )
    logger.info(f"Deleted {result.rowcount} scenarios")
    return result.rowcount
