import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession
from simulai.core.config import settings
from simulai.core.responses import success_response, error_response
from simulai.db.database import get_db
from simulai.db.models.user import User, ROLE_ADMIN, ROLE_COMPANY, ROLE_USER
from simulai.db.repository.user import get_user, get_users, create_user, update_user, delete_user
from simulai.dependencies.auth import get_current_user, require_manager
from simulai.models.user import UserCreate, UserUpdate, UserOut, UserImportResult
from simulai.services.settings_services import get_storage
from simulai.services.user_services import csv_template, users_to_csv, import_users

router = APIRouter(
    prefix="/users",
    tags=["users"],
    dependencies=[Depends(get_current_user)]
)
logger = logging.getLogger(__name__)

#SH: Company managers only see and manage the users of their own company
def _can_manage(current_user: User, target: User) -> bool:
    if current_user.role == ROLE_ADMIN:
        return True
    if current_user.role == ROLE_COMPANY:
        return target.role != ROLE_ADMIN and target.company_id is not None and target.company_id == current_user.company_id
    return False

def _check_assignable(current_user: User, role: Optional[str], company_id: Optional[int]) -> None:
    if current_user.role == ROLE_ADMIN:
        return
    if role == ROLE_ADMIN or (company_id is not None and company_id != current_user.company_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only manage users of your own company"
        )

@router.get("")
async def read_users(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    company_id = None if current_user.role == ROLE_ADMIN else current_user.company_id
    if current_user.role == ROLE_COMPANY and company_id is None:
        return success_response("Users retrieved successfully", data=[])
    users = await get_users(db, company_id=company_id)
    return success_response("Users retrieved successfully", data=[UserOut.model_validate(user) for user in users])

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_new_user(
    payload: UserCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    company_id = payload.company_id
    if current_user.role == ROLE_COMPANY and company_id is None:
        company_id = current_user.company_id
    _check_assignable(current_user, payload.role, company_id)

    user = await create_user(
        db,
        name=payload.name,
        lastname=payload.lastname,
        email=payload.email,
        password=payload.password,
        role=payload.role,
        company_id=company_id,
        department_ids=payload.department_ids,
    )
    return success_response("User created successfully", UserOut.model_validate(user), status_code=status.HTTP_201_CREATED)

#SH: CSV import / export (literal paths are declared before /{user_id})
@router.get("/export")
async def export_users(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    company_id = None if current_user.role == ROLE_ADMIN else current_user.company_id
    users = await get_users(db, company_id=company_id) if current_user.role == ROLE_ADMIN or company_id else []
    return Response(
        content=users_to_csv(users),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="users.csv"'},
    )

@router.get("/import/template")
async def import_template(
    lang: str = Query("en", description="en, es or fr"),
    current_user: User = Depends(require_manager),
):
    return Response(
        content=csv_template(lang),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="users_example_{lang}.csv"'},
    )

@router.post("/import")
async def import_users_csv(
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    if file.content_type not in settings.ALLOWED_CSV_TYPES and not (file.filename or "").lower().endswith(".csv"):
        return error_response("Only CSV files are allowed", http_status=status.HTTP_400_BAD_REQUEST)
    content = await file.read()
    if len(content) > settings.MAX_FILE_SIZE:
        return error_response("File too large", http_status=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE)

    if current_user.role == ROLE_ADMIN:
        forced_company_id, allowed_roles = None, None
    else:
        forced_company_id, allowed_roles = current_user.company_id, (ROLE_USER, ROLE_COMPANY)
    try:
        result = await import_users(db, content, forced_company_id=forced_company_id, allowed_roles=allowed_roles)
    except ValueError as e:
        return error_response(str(e), http_status=status.HTTP_400_BAD_REQUEST)

    return success_response(
        f"{len(result['created'])} users imported, {len(result['errors'])} rows rejected",
        data=UserImportResult(**result),
    )

@router.get("/{user_id}")
async def read_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user = await get_user(db, user_id)
    if not user:
        return error_response("User not found", http_status=status.HTTP_404_NOT_FOUND)
    if user.id != current_user.id and not _can_manage(current_user, user):
        return error_response("Unauthorized access", http_status=status.HTTP_403_FORBIDDEN)
    return success_response("User retrieved successfully", UserOut.model_validate(user))

@router.put("/{user_id}")
async def update_existing_user(
    user_id: int,
    payload: UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user = await get_user(db, user_id)
    if not user:
        return error_response("User not found", http_status=status.HTTP_404_NOT_FOUND)

    values = payload.model_dump(exclude_unset=True)
    if _can_manage(current_user, user):
        _check_assignable(current_user, values.get("role"), values.get("company_id"))
    elif user.id == current_user.id:
        #SH: Plain users may only edit their own name and password
        values = {key: value for key, value in values.items() if key in ("name", "lastname", "password")}
    else:
        return error_response("Unauthorized access", http_status=status.HTTP_403_FORBIDDEN)

    user = await update_user(db, user, values)
    return success_response("User updated successfully", UserOut.model_validate(user))

@router.delete("/{user_id}")
async def delete_existing_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    user = await get_user(db, user_id)
    if not user:
        return error_response("User not found", http_status=status.HTTP_404_NOT_FOUND)
    if user.id == current_user.id:
        return error_response("You cannot delete your own account", http_status=status.HTTP_400_BAD_REQUEST)
    if not _can_manage(current_user, user):
        return error_response("Unauthorized access", http_status=status.HTTP_403_FORBIDDEN)

    await delete_user(db, user)
    return success_response("User deleted successfully", data={"id": user_id})

@router.put("/{user_id}/profile-image")
async def upload_profile_image(
    user_id: int,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user = await get_user(db, user_id)
    if not user:
        return error_response("User not found", http_status=status.HTTP_404_NOT_FOUND)
    if user.id != current_user.id and not _can_manage(current_user, user):
        return error_response("Unauthorized access", http_status=status.HTTP_403_FORBIDDEN)
    if file.content_type not in settings.ALLOWED_IMAGE_TYPES:
        return error_response("Only image files are allowed", http_status=status.HTTP_400_BAD_REQUEST)

    content = await file.read()
    if len(content) > settings.MAX_IMAGE_SIZE:
        return error_response("Image too large", http_status=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE)

    storage = await get_storage(db)
    url = await storage.upload(content, file.filename, file.content_type, folder="profile-images")
    user = await update_user(db, user, {"profile_image": url})
    return success_response("Profile image updated successfully", UserOut.model_validate(user))
