# /student_records/routers/stats_router.py

# --- Core FastAPI Imports ---
from fastapi import APIRouter, Depends

from ..core.deps import require_admin
from ..models.stats_model import StudentStats
from ..services.database_helpers.base_repository import StudentRepository
from ..services.database_service import get_repository

router = APIRouter()


@router.get(
    "",
    response_model=StudentStats,
    summary="Get Student Statistics",
    description="Counts students by status for the dashboard summary cards. Admin only.",
)
def get_student_stats(
    repository: StudentRepository = Depends(get_repository),
    _admin=Depends(require_admin),
):
    return repository.get_student_stats()
