import logging
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.exc import SQLAlchemyError
from fastapi import HTTPException, status
from simulai.core.security import hash_password
from simulai.db.models.user import User, ROLE_ADMIN
from simulai.db.models.company import Department

logger = logging.getLogger(__name__)

# MJ: This file will contain all the database operations related to the User model

async def get_user(db: AsyncSession, user_id: int) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalars().first()

async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalars().first()

async def get_users(db: AsyncSession, company_id: Optional[int] = None) -> List[User]:
    query = select(User).order_by(User.id)
    if company_id is not None:
        query = query.where(User.company_id == company_id)
    result = await db.execute(query)
    return result.scalars().all()

async def _load_departments(db: AsyncSession, department_ids: List[int]) -> List[Department]:
    if not department_ids:
        return []
    result = await db.execute(select(Department).where(Department.id.in_(department_ids)))
    departments = result.scalars().all()
    missing = set(department_ids) - {department.id for department in departments}
    if missing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown department ids: {', '.join(str(i) for i in sorted(missing))}"
        )
    return list(departments)

async def create_user(
    db: AsyncSession,
    name: str,
    email: str,
    password: str,
    role: str,
    lastname: Optional[str] = None,
    company_id: Optional[int] = None,
    department_ids: Optional[List[int]] = None,
) -> User:
    email = email.strip().lower()
    #SH: Email is unique, check first so the caller gets a readable message
    if await get_user_by_email(db, email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User with this email already exists"
        )

    user = User(
        name=name,
        lastname=lastname,
        email=email,
        password=hash_password(password),
        role=role,
        company_id=company_id,
    )
    user.departments = await _load_departments(db, department_ids or [])
    db.add(user)
    try:
        await db.commit()
        await db.refresh(user)
        logger.info(f"User created successfully: {user.id} ({user.email})")
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error creating user {email}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="RU01: An error occurred while creating the user"
        )
    return user

async def update_user(db: AsyncSession, user: User, values: dict) -> User:
    values = dict(values)
    if "email" in values and values["email"]:
        values["email"] = values["email"].strip().lower()
        existing = await get_user_by_email(db, values["email"])
        if existing and existing.id != user.id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="User with this email already exists"
            )
    if values.get("password"):
        values["password"] = hash_password(values["password"])
    else:
        values.pop("password", None)

    department_ids = values.pop("department_ids", None)
    for key, value in values.items():
        setattr(user, key, value)
    if department_ids is not None:
        user.departments = await _load_departments(db, department_ids)

    try:
        await db.commit()
        await db.refresh(user)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error updating user {user.id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="RU02: An error occurred while updating the user"
        )
    return user

async def set_password(db: AsyncSession, user: User, password: str) -> None:
    user.password = hash_password(password)
    await db.commit()

async def delete_user(db: AsyncSession, user: User) -> None:
    await db.delete(user)
    await db.commit()
    logger.info(f"User {user.id} deleted")

#MJ: Seed the first admin from the environment
async def ensure_admin(db: AsyncSession, email: str, password: str) -> Optional[User]:
    if not email or not password:
        return None
    existing = await get_user_by_email(db, email)
    if existing:
        return existing
    logger.info(f"Seeding admin user {email}")
    return await create_user(db, name="Admin", email=email, password=password, role=ROLE_ADMIN)
