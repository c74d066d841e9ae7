from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from uniconnect.core.database import get_db
from uniconnect.core.dependencies import is_admin_request, require_admin
from uniconnect.controllers.otp_controller import authorize_self_edit
from uniconnect.controllers.student_controller import (
    create_student,
    delete_student,
    featured_first,
    get_student,
    list_students,
    update_student_fields,
)
from uniconnect.models.student import StudentStatus, Track
from uniconnect.schemas.student import (
    StudentAdminUpdate,
    StudentCreate,
    StudentCreated,
    StudentDeleted,
    StudentEditResult,
    StudentOut,
    StudentPublicOut,
    StudentSelfEditRequest,
)

router = APIRouter(prefix="/students", tags=["Students"])


# ─────────────────────────────────────────────────────────────
# PUBLIC
# ─────────────────────────────────────────────────────────────
@router.get("", response_model=list[StudentPublicOut])
async def list_public_students(
    status_filter: StudentStatus | None = Query(None, alias="status"),
    track: Track | None = Query(None),
    q: str | None = Query(None, max_length=100, description="Matches name, skills or bio."),
    db: AsyncSession = Depends(get_db),
    is_admin: bool = Depends(is_admin_request),
):
    """
    Approved students, featured first. Email is never included.
    A status other than approved is only honoured for requests carrying the admin key.
    """
    wanted = StudentStatus.APPROVED
    if status_filter is not None and is_admin:
        wanted = status_filter

    students = await list_students(db, status=wanted, track=track, q=q)
    return featured_first(students)


@router.post("", response_model=StudentCreated, status_code=status.HTTP_201_CREATED)
async def submit_student(payload: StudentCreate, db: AsyncSession = Depends(get_db)):
    s = await create_student(db, payload)
    return StudentCreated(id=s.id)


@router.get("/{student_id}", response_model=StudentOut)
async def read_student(student_id: int, db: AsyncSession = Depends(get_db)):
    return await get_student(db, student_id)


# ─────────────────────────────────────────────────────────────
# SELF-SERVICE (OTP)
# ─────────────────────────────────────────────────────────────
@router.patch("/{student_id}/edit", response_model=StudentEditResult)
async def edit_own_profile(
    student_id: int,
    payload: StudentSelfEditRequest,
    db: AsyncSession = Depends(get_db),
):
    await authorize_self_edit(db, student_id, payload.email, payload.code)
    updated = await update_student_fields(db, student_id, payload.updates())
    return StudentEditResult(student=StudentOut.model_validate(updated))


# ─────────────────────────────────────────────────────────────
# ADMIN
# ─────────────────────────────────────────────────────────────
@router.patch("/{student_id}", response_model=StudentOut, dependencies=[Depends(require_admin)])
async def admin_update_student(
    student_id: int,
    payload: StudentAdminUpdate,
    db: AsyncSession = Depends(get_db),
):
    return await update_student_fields(db, student_id, payload)


@router.delete("/{student_id}", response_model=StudentDeleted, dependencies=[Depends(require_admin)])
async def admin_delete_student(student_id: int, db: AsyncSession = Depends(get_db)):
    await delete_student(db, student_id)
    return StudentDeleted(success=True)
