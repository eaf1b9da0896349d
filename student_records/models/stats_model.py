# /student_records/models/stats_model.py

# --- Core Imports ---
from pydantic import BaseModel, Field

# --- Model Definition ---

class StudentStats(BaseModel):
    """
    Defines the data contract for the statistics endpoint that feeds the
    dashboard's summary cards. Recomputed from the student collection on every
    request (subject to the read cache); never persisted.
    """

    totalStudents: int = Field(..., description="The number of students on record.", examples=[112])
    activeStudents: int = Field(..., description="Students whose status is 'active'.", examples=[98])
    pendingApprovals: int = Field(..., description="Students whose status is 'pending'.", examples=[6])
    issuesReported: int = Field(
        ...,
        description="Students whose status is 'inactive'. There is no issue tracker; "
                    "this count stands in for one.",
        examples=[8],
    )
