import json
import logging
from typing import List, Optional, Tuple, Type

from fastapi import HTTPException, Request, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from simulai.core.config import settings
from simulai.core.file_processing import process_pdf_files
from simulai.db.models.scenario import Scenario
from simulai.db.models.user import User, ROLE_ADMIN, ROLE_COMPANY
from simulai.db.repository.scenario import get_scenario
from simulai.services.settings_services import get_storage

logger = logging.getLogger(__name__)

JSON_FORM_FIELDS = ("aspects", "existing_files")


def can_read(user: User, scenario: Scenario) -> bool:
    if user.role == ROLE_ADMIN:
        return True
    if scenario.user_id_assigned == user.id:
        return True
    return user.role == ROLE_COMPANY and can_manage(user, scenario)


#SH: Company managers own the scenarios they created and those assigned inside their company
def can_manage(user: User, scenario: Scenario) -> bool:
    if user.role == ROLE_ADMIN:
        return True
    if user.role != ROLE_COMPANY:
        return False
    if scenario.user_id_created == user.id:
        return True
    assigned = scenario.assigned_user
    return assigned is not None and user.company_id is not None and assigned.company_id == user.company_id


async def load_scenario(db: AsyncSession, scenario_id: int, user: User, manage: bool = False) -> Scenario:
    scenario = await get_scenario(db, scenario_id)
    if not scenario:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Scenario not found")
    allowed = can_manage(user, scenario) if manage else can_read(user, scenario)
    if not allowed:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Unauthorized access")
    return scenario


#SH: Scenario create/update come as multipart forms (files next to the fields) or as JSON
async def parse_scenario_request(request: Request, model: Type[BaseModel]) -> Tuple[BaseModel, List[UploadFile]]:
    content_type = request.headers.get("content-type", "")
    uploads: List[UploadFile] = []
    if content_type.startswith("application/json"):
        raw = await request.json()
    else:
        form = await request.form()
        raw = {}
        for key, value in form.multi_items():
            if key == "files":
                if hasattr(value, "filename") and value.filename:
                    uploads.append(value)
                continue
            if value in ("", "null", "undefined"):
                continue
            raw[key] = value
        for key in JSON_FORM_FIELDS:
            if isinstance(raw.get(key), str):
                try:
                    raw[key] = json.loads(raw[key])
                except json.JSONDecodeError:
                    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid JSON in field '{key}'")

    try:
        fields = model.model_validate(raw)
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False, include_context=False))

    if len(uploads) > settings.MAX_SCENARIO_FILES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"At most {settings.MAX_SCENARIO_FILES} files per scenario"
        )
    return fields, uploads


#SH: Upload the files to S3 and extract the text of the PDFs among them
async def store_scenario_files(db: AsyncSession, uploads: List[UploadFile]) -> Tuple[List[str], Optional[str]]:
    if not uploads:
        return [], None

    contents = []
    for upload in uploads:
        data = await upload.read()
        if len(data) > settings.MAX_FILE_SIZE:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File {upload.filename} is too large"
            )
        contents.append((upload.filename, upload.content_type, data))

    storage = await get_storage(db)
    urls = []
    for filename, content_type, data in contents:
        urls.append(await storage.upload(data, filename, content_type, folder="scenarios"))

    pdf_text = process_pdf_files(contents) or None
    logger.info(f"Stored {len(urls)} scenario files, pdf text: {len(pdf_text or '')} chars")
    return urls, pdf_text
