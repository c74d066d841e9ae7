from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from uniconnect.core.clock import utcnow
from uniconnect.core.database import get_db
from uniconnect.core.dependencies import require_admin
from uniconnect.controllers.student_controller import list_students, student_stats, students_to_csv
from uniconnect.models.student import StudentStatus, Track
from uniconnect.schemas.student import StudentOut, StudentStats

router = APIRouter(
    prefix="/admin/students",
    tags=["Admin - Students"],
    dependencies=[Depends(require_admin)],
)


@router.get("", response_model=list[StudentOut])
async def admin_list_students(
    status: StudentStatus | None = Query(None),
    track: Track | None = Query(None),
    q: str | None = Query(None, max_length=100),
    db: AsyncSession = Depends(get_db),
):
    """Every student regardless of status, newest first, email included."""
    return await list_students(db, status=status, track=track, q=q)


@router.get("/export")
async def export_students_csv(
    status: StudentStatus | None = Query(None),
    track: Track | None = Query(None),
    q: str | None = Query(None, max_length=100),
    db: AsyncSession = Depends(get_db),
):
    students = await list_students(db, status=status, track=track, q=q)
    filename = f"students_export_{utcnow().date().isoformat()}.csv"

    return StreamingResponse(
        iter([students_to_csv(students)]),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/stats", response_model=StudentStats)
async def admin_student_stats(db: AsyncSession = Depends(get_db)):
    return await student_stats(db)
