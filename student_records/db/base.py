# /student_records/db/base.py

# Central registry for all SQLAlchemy models. Importing them here guarantees
# the Base metadata knows every table before `init_db` creates them.

from .database import Base

from .models.student_user_models import StudentRecord, UserRecord
