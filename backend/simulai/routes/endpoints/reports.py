import io
import logging
import re
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession
from simulai.core.pdf_utils import report_to_pdf, report_to_docx
from simulai.core.responses import success_response, error_response
from simulai.db.database import get_db
from simulai.db.models.report import Report
from simulai.db.models.scenario import Scenario
from simulai.db.models.user import User
from simulai.db.repository.conversation import get_conversations
from simulai.db.repository.report import create_report, get_reports, get_report, set_show_to_user
from simulai.dependencies.auth import get_current_user, require_manager
from simulai.models.report import ReportCreate, ReportOut, GenerateReportRequest, ShowToUser
from simulai.services.report_services import generate_report, get_aspect_scores, extract_aspect_scores, scores_as_dict
from simulai.services.scenario_services import load_scenario, can_manage

# MJ: Evaluation reports of a scenario
router = APIRouter(
    prefix="/scenarios",
    tags=["reports"],
    dependencies=[Depends(get_current_user)]
)
logger = logging.getLogger(__name__)

async def _load_report(db: AsyncSession, scenario: Scenario, report_id: int, user: User) -> Report:
    report = await get_report(db, scenario.id, report_id)
    #SH: Users only see reports the manager chose to share
    if not report or (not can_manage(user, scenario) and not report.show_to_user):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")
    return report

def _export_filename(report: Report, extension: str) -> str:
    stem = re.sub(r"[^A-Za-z0-9_-]+", "_", report.title).strip("_") or f"report_{report.id}"
    return f"{stem}.{extension}"

def _export_data(report: Report, scenario: Scenario) -> dict:
    return {
        "title": report.title,
        "content": report.content,
        "created_at": report.created_at,
        "scenario_title": scenario.title,
        "user_name": report.user.name if report.user else "",
    }

@router.post("/{scenario_id}/reports", status_code=status.HTTP_201_CREATED)
async def save_report(
    scenario_id: int,
    payload: ReportCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    scenario = await load_scenario(db, scenario_id, current_user, manage=True)
    if payload.conversations_ids:
        known = {c.id for c in await get_conversations(db, scenario_id=scenario.id, conversation_ids=payload.conversations_ids)}
        unknown = set(payload.conversations_ids) - known
        if unknown:
            return error_response(
                f"Conversations {sorted(unknown)} do not belong to this scenario",
                http_status=status.HTTP_400_BAD_REQUEST,
            )

    report = await create_report(
        db,
        scenario_id=scenario.id,
        title=payload.title,
        content=payload.content,
        conversations_ids=payload.conversations_ids,
        user_id=current_user.id,
        show_to_user=payload.show_to_user,
    )
    return success_response("Report saved successfully", ReportOut.model_validate(report), status_code=status.HTTP_201_CREATED)

#SH: Send the selected conversations to an assistant and store its evaluation
@router.post("/{scenario_id}/reports/generate")
async def generate_scenario_report(
    scenario_id: int,
    payload: GenerateReportRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    scenario = await load_scenario(db, scenario_id, current_user, manage=True)
    result = await generate_report(
        db,
        scenario,
        current_user,
        assistant_id=payload.assistant_id,
        conversation_ids=payload.conversation_ids,
        title=payload.title,
        save=payload.save,
        show_to_user=payload.show_to_user,
    )
    if result["report"] is not None:
        result["report"] = ReportOut.model_validate(result["report"])
    return success_response("Report generated successfully", data=result)

@router.get("/{scenario_id}/reports")
async def read_reports(
    scenario_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    scenario = await load_scenario(db, scenario_id, current_user)
    reports = await get_reports(db, scenario.id, only_visible=not can_manage(current_user, scenario))
    return success_response("Reports retrieved successfully", data=[ReportOut.model_validate(r) for r in reports])

@router.get("/{scenario_id}/aspect-scores")
async def read_aspect_scores(
    scenario_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    scenario = await load_scenario(db, scenario_id, current_user)
    result = await get_aspect_scores(db, scenario, current_user)
    return success_response("Aspect scores retrieved successfully", data=result)

@router.get("/{scenario_id}/reports/{report_id}")
async def read_report(
    scenario_id: int,
    report_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    scenario = await load_scenario(db, scenario_id, current_user)
    report = await _load_report(db, scenario, report_id, current_user)
    return success_response("Report retrieved successfully", ReportOut.model_validate(report))

@router.get("/{scenario_id}/reports/{report_id}/export/pdf")
async def export_report_pdf(
    scenario_id: int,
    report_id: int,
    lang: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    scenario = await load_scenario(db, scenario_id, current_user)
    report = await _load_report(db, scenario, report_id, current_user)
    scores = scores_as_dict(extract_aspect_scores(report.content, scenario.aspects))
    content = report_to_pdf(_export_data(report, scenario), scores, lang)
    return StreamingResponse(
        io.BytesIO(content),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{_export_filename(report, "pdf")}"'},
    )

@router.get("/{scenario_id}/reports/{report_id}/export/word")
async def export_report_word(
    scenario_id: int,
    report_id: int,
    lang: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    scenario = await load_scenario(db, scenario_id, current_user)
    report = await _load_report(db, scenario, report_id, current_user)
    scores = scores_as_dict(extract_aspect_scores(report.content, scenario.aspects))
    content = report_to_docx(_export_data(report, scenario), scores, lang)
    return StreamingResponse(
        io.BytesIO(content),
        media_type="application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        headers={"Content-Disposition": f'attachment; filename="{_export_filename(report, "docx")}"'},
    )

@router.patch("/{scenario_id}/reports/{report_id}/show-to-user")
async def update_report_visibility(
    scenario_id: int,
    report_id: int,
    payload: ShowToUser,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    scenario = await load_scenario(db, scenario_id, current_user, manage=True)
    report = await _load_report(db, scenario, report_id, current_user)
    report = await set_show_to_user(db, report, payload.show_to_user)
    return success_response("Report visibility updated", ReportOut.model_validate(report))
