import logging
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.exc import SQLAlchemyError
from fastapi import HTTPException, status
from simulai.db.models.report import Report

logger = logging.getLogger(__name__)

# MJ: Database operations for evaluation reports

async def create_report(
    db: AsyncSession,
    scenario_id: int,
    title: str,
    content: str,
    conversations_ids: List[int],
    user_id: Optional[int],
    show_to_user: bool = False,
) -> Report:
    report = Report(
        scenario_id=scenario_id,
        title=title,
        content=content,
        conversations_ids=list(conversations_ids),
        user_id=user_id,
        show_to_user=show_to_user,
    )
    db.add(report)
    try:
        await db.commit()
        await db.refresh(report)
        logger.info(f"Report {report.id} saved for scenario {scenario_id}")
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error saving report for scenario {scenario_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="RR01: An error occurred while saving the report"
        )
    return report

async def get_reports(db: AsyncSession, scenario_id: int, only_visible: bool = False) -> List[Report]:
    query = (
        select(Report)
        .where(Report.scenario_id == scenario_id)
        .order_by(Report.created_at.desc(), Report.id.desc())
    )
    if only_visible:
        query = query.where(Report.show_to_user.is_(True))
    result = await db.execute(query)
    return result.scalars().all()

async def get_report(db: AsyncSession, scenario_id: int, report_id: int) -> Report | None:
    result = await db.execute(
        select(Report).where((Report.id == report_id) & (Report.scenario_id == scenario_id))
    )
    return result.scalars().first()

async def get_latest_report(db: AsyncSession, scenario_id: int, only_visible: bool = False) -> Report | None:
    reports = await get_reports(db, scenario_id, only_visible=only_visible)
    return reports[0] if reports else None

async def set_show_to_user(db: AsyncSession, report: Report, show_to_user: bool) -> Report:
    report.show_to_user = show_to_user
    await db.commit()
    await db.refresh(report)
    return report
