# /student_records/routers/students_router.py

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Path, Query, Response, status
from fastapi.responses import StreamingResponse

from ..core.deps import get_current_user, require_admin
from ..models import student_model
from ..services import student_service
from ..services.database_helpers.base_repository import StudentRepository
from ..services.database_service import get_repository

router = APIRouter()

STUDENT_NOT_FOUND = "Student not found"


def get_student_filters(
    status: Optional[str] = Query(default=None, description="active, inactive, pending or all"),
    grade: Optional[int] = Query(default=None, ge=0, description="0 means any grade"),
    search: Optional[str] = Query(default=None, description="Matches name, email or student code"),
    sort: Optional[str] = Query(default=None, description="name_asc, name_desc, id_asc or id_desc"),
    page: Optional[int] = Query(default=None, ge=1),
    limit: Optional[int] = Query(default=None, ge=1),
) -> student_model.StudentFilters:
    return student_model.StudentFilters(
        status=status, grade=grade, search=search, sort=sort, page=page, limit=limit
    )


# --- STUDENT COLLECTION ENDPOINTS (/api/students) ---

@router.get("", response_model=List[student_model.Student], summary="List Students with Optional Filters")
def list_students(
    filters: student_model.StudentFilters = Depends(get_student_filters),
    repository: StudentRepository = Depends(get_repository),
    _user=Depends(get_current_user),
):
    return repository.list_students(filters)


@router.post("", response_model=student_model.Student, status_code=status.HTTP_201_CREATED, summary="Create a Student")
def create_student(
    payload: Dict[str, Any] = Body(...),
    repository: StudentRepository = Depends(get_repository),
    _admin=Depends(require_admin),
):
    return student_service.create_student(repository, payload)


@router.get("/export", summary="Export Students as CSV", response_class=StreamingResponse)
def export_students_csv(
    filters: student_model.StudentFilters = Depends(get_student_filters),
    repository: StudentRepository = Depends(get_repository),
    _admin=Depends(require_admin),
):
    csv_string = student_service.export_students_csv(repository, filters)
    return StreamingResponse(
        iter([csv_string]),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=students.csv"},
    )


# --- INDIVIDUAL STUDENT ENDPOINTS (/api/students/{student_id}) ---

@router.get("/{student_id}", response_model=student_model.Student, summary="Get a Single Student")
def get_student(
    student_id: int = Path(..., gt=0),
    repository: StudentRepository = Depends(get_repository),
    _user=Depends(get_current_user),
):
    student = repository.get_student(student_id)
    if student is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=STUDENT_NOT_FOUND)
    return student


@router.patch("/{student_id}", response_model=student_model.Student, summary="Update a Student")
def update_student(
    student_id: int = Path(..., gt=0),
    payload: Dict[str, Any] = Body(...),
    repository: StudentRepository = Depends(get_repository),
    _admin=Depends(require_admin),
):
    updated_student = student_service.update_student(repository, student_id, payload)
    if updated_student is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=STUDENT_NOT_FOUND)
    return updated_student


@router.delete("/{student_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a Student")
def delete_student(
    student_id: int = Path(..., gt=0),
    repository: StudentRepository = Depends(get_repository),
    _admin=Depends(require_admin),
):
    was_deleted = student_service.delete_student(repository, student_id)
    if not was_deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=STUDENT_NOT_FOUND)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
