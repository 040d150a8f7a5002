import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from simulai.core.responses import success_response
from simulai.db.database import get_db
from simulai.db.models.user import User
from simulai.dependencies.auth import get_current_user, require_manager
from simulai.models.report import AssistantReportRequest
from simulai.services.report_services import run_assistant
from simulai.services.settings_services import get_llm_client

#SH: OpenAI assistants used as report evaluators
router = APIRouter(
    prefix="/openai",
    tags=["assistants"],
    dependencies=[Depends(get_current_user)]
)
logger = logging.getLogger(__name__)

@router.get("/assistants")
async def read_assistants(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    client = await get_llm_client(db, "openai")
    assistants = await client.list_assistants()
    return success_response("Assistants retrieved successfully", data=assistants)

@router.post("/generate-report")
async def generate_report_with_assistant(
    payload: AssistantReportRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    client = await get_llm_client(db, "openai")
    messages = [{"role": m.role, "content": m.content} for m in payload.messages]
    report = await run_assistant(client, payload.assistant_id, messages, payload.system_prompt)
    return success_response("Report generated successfully", data={"report": report})
