import logging
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql.expression import delete, update
from fastapi import HTTPException, status
from simulai.db.models.company import Company, Department
from simulai.db.models.user import User, user_departments

logger = logging.getLogger(__name__)

# SH: All the database operations related to companies and their departments

async def get_companies(db: AsyncSession) -> List[Company]:
    result = await db.execute(select(Company).order_by(Company.id))
    return result.scalars().all()

async def get_company(db: AsyncSession, company_id: int) -> Company | None:
    result = await db.execute(select(Company).where(Company.id == company_id))
    return result.scalars().first()

async def create_company(
    db: AsyncSession,
    name: str,
    departments: List[str],
    created_by: Optional[int] = None,
    logo: Optional[str] = None,
) -> Company:
    company = Company(name=name, logo=logo, created_by=created_by)
    company.departments = [Department(name=dep) for dep in departments if dep and dep.strip()]
    db.add(company)
    try:
        await db.commit()
        await db.refresh(company)
        logger.info(f"Company created: {company.id} with {len(company.departments)} departments")
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error creating company {name}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="RC01: An error occurred while creating the company"
        )
    return company

async def update_company(
    db: AsyncSession,
    company: Company,
    name: Optional[str] = None,
    departments: Optional[List[dict]] = None,
    logo: Optional[str] = None,
) -> Company:
    if name is not None:
        company.name = name
    if logo is not None:
        company.logo = logo

    #SH: Departments carrying an id are renamed, new ones created, missing ones removed
    if departments is not None:
        current = {department.id: department for department in company.departments}
        keep_ids = {dep["id"] for dep in departments if dep.get("id") in current}
        removed_ids = [dep_id for dep_id in current if dep_id not in keep_ids]
        if removed_ids:
            await db.execute(delete(user_departments).where(user_departments.c.department_id.in_(removed_ids)))

        new_departments = []
        for dep in departments:
            if dep.get("id") in current:
                current[dep["id"]].name = dep["name"]
                new_departments.append(current[dep["id"]])
            elif dep.get("name", "").strip():
                new_departments.append(Department(name=dep["name"].strip()))
        company.departments = new_departments

    try:
        await db.commit()
        await db.refresh(company)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error updating company {company.id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="RC02: An error occurred while updating the company"
        )
    return company

#SH: Delete company, its departments and every user assignment to them in one transaction
async def delete_company(db: AsyncSession, company: Company) -> None:
    department_ids = [department.id for department in company.departments]
    try:
        if department_ids:
            await db.execute(delete(user_departments).where(user_departments.c.department_id.in_(department_ids)))
            await db.execute(delete(Department).where(Department.id.in_(department_ids)))
        await db.execute(update(User).where(User.company_id == company.id).values(company_id=None))
        await db.execute(delete(Company).where(Company.id == company.id))
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error deleting company {company.id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="RC03: An error occurred while deleting the company"
        )
    logger.info(f"Company {company.id} deleted with departments {department_ids}")
