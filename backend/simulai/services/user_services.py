import csv
import io
import logging
import secrets
from typing import List, Optional

from fastapi import HTTPException
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from simulai.db.models.user import User
from simulai.db.repository.user import create_user
from simulai.models.user import UserCreate, UserOut

logger = logging.getLogger(__name__)

CSV_COLUMNS = ["name", "lastname", "email", "role", "company_id", "department_ids"]

#SH: Example rows for the downloadable import template, per UI language
CSV_EXAMPLES = {
    "en": [
        ("John", "Doe", "john.doe@example.com", "user", "1", "16"),
        ("Jane", "Smith", "jane.smith@example.com", "user", "", "17"),
        ("Mike", "Johnson", "mike.johnson@example.com", "user", "", "16,18"),
        ("Sarah", "Wilson", "sarah.wilson@example.com", "user", "", "16"),
        ("David", "Brown", "david.brown@example.com", "company", "2", "20"),
        ("Lisa", "Davis", "lisa.davis@example.com", "user", "", "17,18"),
        ("Tom", "Miller", "tom.miller@example.com", "admin", "", ""),
    ],
    "es": [
        ("Juan", "Pérez", "juan.perez@ejemplo.com", "user", "1", "16"),
        ("María", "García", "maria.garcia@ejemplo.com", "user", "", "17"),
        ("Carlos", "López", "carlos.lopez@ejemplo.com", "user", "", "16,18"),
        ("Ana", "Martínez", "ana.martinez@ejemplo.com", "user", "", "16"),
        ("Luis", "Rodríguez", "luis.rodriguez@ejemplo.com", "company", "2", "20"),
        ("Carmen", "Fernández", "carmen.fernandez@ejemplo.com", "user", "", "17,18"),
        ("Pedro", "Sánchez", "pedro.sanchez@ejemplo.com", "admin", "", ""),
    ],
    "fr": [
        ("Pierre", "Dupont", "pierre.dupont@exemple.com", "user", "1", "16"),
        ("Marie", "Martin", "marie.martin@exemple.com", "user", "", "17"),
        ("Jean", "Bernard", "jean.bernard@exemple.com", "user", "", "16,18"),
        ("Sophie", "Dubois", "sophie.dubois@exemple.com", "user", "", "16"),
        ("Michel", "Thomas", "michel.thomas@exemple.com", "company", "2", "20"),
        ("Catherine", "Robert", "catherine.robert@exemple.com", "user", "", "17,18"),
        ("François", "Petit", "francois.petit@exemple.com", "admin", "", ""),
    ],
}


def _write_csv(rows: List[list]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    writer.writerows(rows)
    return buffer.getvalue()


def csv_template(lang: Optional[str] = None) -> str:
    examples = CSV_EXAMPLES.get((lang or "en")[:2].lower(), CSV_EXAMPLES["en"])
    return _write_csv([list(row) for row in examples])


def users_to_csv(users: List[User]) -> str:
    rows = []
    for user in users:
        rows.append([
            user.name,
            user.lastname or "",
            user.email,
            user.role,
            user.company_id if user.company_id is not None else "",
            ",".join(str(department_id) for department_id in user.department_ids),
        ])
    return _write_csv(rows)


def _parse_ids(raw: str) -> List[int]:
    return [int(part) for part in (raw or "").replace(";", ",").split(",") if part.strip()]


def parse_users_csv(content: bytes) -> List[dict]:
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        text = content.decode("latin-1")

    reader = csv.DictReader(io.StringIO(text))
    missing = {"name", "email"} - {field.strip().lower() for field in reader.fieldnames or []}
    if missing:
        raise ValueError(f"CSV is missing required columns: {', '.join(sorted(missing))}")

    rows = []
    for row in reader:
        row = {(key or "").strip().lower(): (value or "").strip() for key, value in row.items()}
        if not any(row.values()):
            continue
        rows.append(row)
    return rows


#SH: Rows are created one by one, a bad row is reported and skipped
async def import_users(
    db: AsyncSession,
    content: bytes,
    forced_company_id: Optional[int] = None,
    allowed_roles: Optional[tuple] = None,
) -> dict:
    created, errors, credentials = [], [], []
    for line, row in enumerate(parse_users_csv(content), start=2):
        password = row.get("password") or secrets.token_urlsafe(9)
        try:
            payload = UserCreate(
                name=row.get("name", ""),
                lastname=row.get("lastname") or None,
                email=row.get("email", ""),
                role=row.get("role") or "user",
                company_id=forced_company_id if forced_company_id is not None else (int(row["company_id"]) if row.get("company_id") else None),
                department_ids=_parse_ids(row.get("department_ids", "")),
                password=password,
            )
        except (ValidationError, ValueError) as e:
            errors.append({"line": line, "email": row.get("email"), "error": str(e)})
            continue

        if allowed_roles and payload.role not in allowed_roles:
            errors.append({"line": line, "email": payload.email, "error": f"Role '{payload.role}' is not allowed"})
            continue

        try:
            user = await create_user(
                db,
                name=payload.name,
                lastname=payload.lastname,
                email=payload.email,
                password=payload.password,
                role=payload.role,
                company_id=payload.company_id,
                department_ids=payload.department_ids,
            )
        except HTTPException as e:
            errors.append({"line": line, "email": payload.email, "error": e.detail})
            continue

        created.append(UserOut.model_validate(user))
        if not row.get("password"):
            credentials.append({"email": user.email, "name": user.name, "password": password})

    logger.info(f"CSV import finished: {len(created)} created, {len(errors)} errors")
    return {"created": created, "errors": errors, "credentials": credentials}
