import logging
from fastapi import APIRouter, Depends, status, UploadFile, File
from sqlalchemy.ext.asyncio import AsyncSession
from simulai.core.config import settings
from simulai.core.responses import success_response, error_response
from simulai.db.database import get_db
from simulai.db.models.user import User, ROLE_ADMIN
from simulai.db.repository.company import get_companies, get_company, create_company, update_company, delete_company
from simulai.dependencies.auth import get_current_user, require_admin, require_manager
from simulai.models.company import CompanyCreate, CompanyUpdate, CompanyOut
from simulai.services.settings_services import get_storage

# SH: This is our Main Router for all the routes related to companies
router = APIRouter(
    prefix="/companies",
    tags=["companies"],
    dependencies=[Depends(get_current_user)]
)
logger = logging.getLogger(__name__)

@router.get("")
async def read_companies(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    companies = await get_companies(db)
    if current_user.role != ROLE_ADMIN:
        companies = [company for company in companies if company.id == current_user.company_id]
    return success_response("Companies retrieved successfully", data=[CompanyOut.model_validate(c) for c in companies])

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_new_company(
    payload: CompanyCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    company = await create_company(db, name=payload.name, departments=payload.departments, created_by=current_user.id)
    return success_response("Company created successfully", CompanyOut.model_validate(company), status_code=status.HTTP_201_CREATED)

@router.get("/{company_id}")
async def read_company(
    company_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    company = await get_company(db, company_id)
    if not company:
        return error_response("Company not found", http_status=status.HTTP_404_NOT_FOUND)
    if current_user.role != ROLE_ADMIN and current_user.company_id != company.id:
        return error_response("Unauthorized access", http_status=status.HTTP_403_FORBIDDEN)
    return success_response("Company retrieved successfully", CompanyOut.model_validate(company))

@router.put("/{company_id}")
async def update_existing_company(
    company_id: int,
    payload: CompanyUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    company = await get_company(db, company_id)
    if not company:
        return error_response("Company not found", http_status=status.HTTP_404_NOT_FOUND)

    departments = None
    if payload.departments is not None:
        departments = [department.model_dump() for department in payload.departments]
    company = await update_company(db, company, name=payload.name, departments=departments)
    return success_response("Company updated successfully", CompanyOut.model_validate(company))

#SH: Departments and their user assignments are removed together with the company
@router.delete("/{company_id}")
async def delete_existing_company(
    company_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    company = await get_company(db, company_id)
    if not company:
        return error_response("Company not found", http_status=status.HTTP_404_NOT_FOUND)
    await delete_company(db, company)
    return success_response("Company deleted successfully", data={"id": company_id})

@router.put("/{company_id}/logo")
async def upload_company_logo(
    company_id: int,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    company = await get_company(db, company_id)
    if not company:
        return error_response("Company not found", http_status=status.HTTP_404_NOT_FOUND)
    if file.content_type not in settings.ALLOWED_IMAGE_TYPES:
        return error_response("Only image files are allowed", http_status=status.HTTP_400_BAD_REQUEST)

    content = await file.read()
    if len(content) > settings.MAX_IMAGE_SIZE:
        return error_response("Image too large", http_status=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE)

    storage = await get_storage(db)
    url = await storage.upload(content, file.filename, file.content_type, folder="logos")
    company = await update_company(db, company, logo=url)
    return success_response("Logo updated successfully", CompanyOut.model_validate(company))
