import io
import logging
from fastapi import APIRouter, Depends, Request, status, UploadFile, File
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession
from simulai.core.config import settings
from simulai.core.responses import success_response, error_response
from simulai.db.database import get_db
from simulai.db.models.user import User, ROLE_USER
from simulai.db.repository.conversation import save_session_state, reset_timer
from simulai.db.repository.scenario import (
    get_scenarios, get_scenarios_by_user, create_scenario, update_scenario, delete_scenarios, get_scenario
)
from simulai.dependencies.auth import get_current_user, require_admin, require_manager
from simulai.models.scenario import (
    ScenarioFields, ScenarioUpdateFields, ScenarioOut, BulkDelete, ElapsedTimeOut, SessionStateIn,
    FinalMessage, ImagePrompt, SpeechRequest
)
from simulai.services.scenario_services import (
    load_scenario, can_manage, can_read, parse_scenario_request, store_scenario_files
)
from simulai.services.settings_services import get_llm_client
from simulai.services.simulation_services import get_elapsed_time, start_avatar_session, process_final_message

# MJ: This is our Main Router for all the routes related to Scenarios
router = APIRouter(
    prefix="/scenarios",
    tags=["scenarios"],
    dependencies=[Depends(get_current_user)]
)
logger = logging.getLogger(__name__)

#SH: Get all scenarios visible to the current user
@router.get("")
async def read_scenarios(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if current_user.role == ROLE_USER:
        scenarios = await get_scenarios_by_user(db, current_user.id)
    else:
        scenarios = [s for s in await get_scenarios(db) if can_read(current_user, s)]
    return success_response("Scenarios retrieved successfully", data=[ScenarioOut.model_validate(s) for s in scenarios])

#SH: Create a scenario (multipart: fields + files)
@router.post("", status_code=status.HTTP_201_CREATED)
async def create_new_scenario(
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    fields, uploads = await parse_scenario_request(request, ScenarioFields)
    values = fields.model_dump()
    values["aspects"] = [aspect.model_dump() for aspect in fields.aspects]
    values["files"], values["pdf_contents"] = await store_scenario_files(db, uploads)
    values["user_id_created"] = current_user.id

    scenario = await create_scenario(db, values)
    return success_response("Scenario created successfully", ScenarioOut.model_validate(scenario), status_code=status.HTTP_201_CREATED)

@router.delete("/bulk")
async def bulk_delete_scenarios(
    payload: BulkDelete,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    ids = sorted(set(payload.ids))
    for scenario_id in ids:
        scenario = await get_scenario(db, scenario_id)
        if scenario and not can_manage(current_user, scenario):
            return error_response(f"Unauthorized access to scenario {scenario_id}", http_status=status.HTTP_403_FORBIDDEN)
    deleted = await delete_scenarios(db, ids)
    return success_response(f"{deleted} scenarios deleted successfully", data={"deleted": deleted, "ids": ids})

#SH: Persona image (DALL-E) for the scenario form
@router.post("/generate-image")
async def generate_image(
    payload: ImagePrompt,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    client = await get_llm_client(db, "openai")
    url = await client.generate_image(payload.prompt)
    return success_response("Image generated successfully", data={"url": url})

@router.get("/user/{user_id}")
async def read_scenarios_by_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if current_user.role == ROLE_USER and current_user.id != user_id:
        return error_response("Unauthorized access", http_status=status.HTTP_403_FORBIDDEN)
    scenarios = [s for s in await get_scenarios_by_user(db, user_id) if can_read(current_user, s)]
    return success_response("Scenarios retrieved successfully", data=[ScenarioOut.model_validate(s) for s in scenarios])

@router.get("/{scenario_id}")
async def read_scenario(
    scenario_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    scenario = await load_scenario(db, scenario_id, current_user)
    return success_response("Scenario retrieved successfully", ScenarioOut.model_validate(scenario))

@router.put("/{scenario_id}")
async def update_existing_scenario(
    scenario_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    scenario = await load_scenario(db, scenario_id, current_user, manage=True)
    fields, uploads = await parse_scenario_request(request, ScenarioUpdateFields)
    values = fields.model_dump(exclude_unset=True)
    existing_files = values.pop("existing_files", None)
    if fields.aspects is not None:
        values["aspects"] = [aspect.model_dump() for aspect in fields.aspects]

    #SH: Kept files + new uploads. New PDFs replace the extracted text
    new_urls, pdf_text = await store_scenario_files(db, uploads)
    if existing_files is not None or new_urls:
        kept = existing_files if existing_files is not None else list(scenario.files or [])
        values["files"] = kept + new_urls
    if pdf_text:
        values["pdf_contents"] = pdf_text

    scenario = await update_scenario(db, scenario, values)
    return success_response("Scenario updated successfully", ScenarioOut.model_validate(scenario))

@router.delete("/{scenario_id}")
async def delete_existing_scenario(
    scenario_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    await load_scenario(db, scenario_id, current_user, manage=True)
    await delete_scenarios(db, [scenario_id])
    return success_response("Scenario deleted successfully", data={"id": scenario_id})

@router.get("/{scenario_id}/pdf-contents")
async def read_pdf_contents(
    scenario_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    scenario = await load_scenario(db, scenario_id, current_user)
    if scenario.pdf_contents:
        return success_response("PDF contents retrieved successfully", data={"pdf_contents": scenario.pdf_contents})

    has_pdfs = any(url.lower().endswith(".pdf") for url in scenario.files or [])
    message = (
        "PDF files exist but content has not been extracted. Try re-uploading the PDFs."
        if has_pdfs else "No PDF content available for this scenario"
    )
    return success_response(message, data={"pdf_contents": ""})

#SH: Timer endpoints
@router.get("/{scenario_id}/elapsed-time")
async def read_elapsed_time(
    scenario_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    scenario = await load_scenario(db, scenario_id, current_user)
    timing = await get_elapsed_time(db, scenario, current_user)
    return success_response("Elapsed time retrieved successfully", ElapsedTimeOut(**timing))

@router.put("/{scenario_id}/session-state")
async def update_session_state(
    scenario_id: int,
    payload: SessionStateIn,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    scenario = await load_scenario(db, scenario_id, current_user)
    state = await save_session_state(db, scenario.id, current_user.id, payload.elapsed_time)
    return success_response("Session state saved", data={"elapsed_time": state.elapsed_time})

@router.delete("/{scenario_id}/reset-timer")
async def reset_scenario_timer(
    scenario_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    scenario = await load_scenario(db, scenario_id, current_user, manage=True)
    removed = await reset_timer(db, scenario.id)
    return success_response(
        "Timer reset successfully",
        data={"scenario_id": scenario.id, "scenario_title": scenario.title, "conversations_removed": removed},
    )

@router.post("/{scenario_id}/avatar-session")
async def create_avatar_session(
    scenario_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    scenario = await load_scenario(db, scenario_id, current_user)
    session = await start_avatar_session(db, scenario, current_user)
    return success_response("Avatar session created", data=session)

#SH: AI endpoints
@router.post("/{scenario_id}/process-audio")
async def process_audio(
    scenario_id: int,
    audio: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    await load_scenario(db, scenario_id, current_user)
    content = await audio.read()
    if not content:
        return error_response("Audio file is empty", http_status=status.HTTP_400_BAD_REQUEST)
    if len(content) > settings.MAX_FILE_SIZE:
        return error_response("Audio file too large", http_status=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE)

    client = await get_llm_client(db, "openai")
    text = await client.transcribe(audio.filename or "audio.webm", content)
    return success_response("Audio transcribed successfully", data={"text": text})

@router.post("/{scenario_id}/process-final-message")
async def evaluate_final_message(
    scenario_id: int,
    payload: FinalMessage,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    scenario = await load_scenario(db, scenario_id, current_user)
    response = await process_final_message(db, scenario, payload.message)
    return success_response("Final message processed successfully", data={"response": response})

@router.post("/{scenario_id}/speech")
async def synthesize_speech(
    scenario_id: int,
    payload: SpeechRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    await load_scenario(db, scenario_id, current_user)
    client = await get_llm_client(db, "openai")
    audio = await client.speech(payload.text)
    return StreamingResponse(io.BytesIO(audio), media_type="audio/mpeg")
