# /student_records/core/config.py

"""
Runtime configuration for the student records backend.

Every setting is read once from the environment (after loading a local `.env`
file, if present) and exposed as a module-level constant, so the rest of the
application imports plain values instead of calling `os.getenv` everywhere.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# --- Storage ---
# Which repository backend the factory builds: "memory", "sql" or "mongo".
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "memory").lower()

# SQLAlchemy URL used by the "sql" backend.
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./students.db")

# MongoDB connection used by the "mongo" backend.
MONGO_URL = os.getenv("MONGO_URL", "mongodb://localhost:27017")
MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "student_records")
MONGO_TIMEOUT_MS = int(os.getenv("MONGO_TIMEOUT_MS", 5000))

# Read cache in front of external backends. 0 disables it.
CACHE_TTL_SECONDS = float(os.getenv("CACHE_TTL_SECONDS", 60))

# --- Sessions ---
SESSION_SECRET = os.getenv("SESSION_SECRET", "student-management-app-secret")
SESSION_MAX_AGE = int(os.getenv("SESSION_MAX_AGE", 60 * 60 * 24 * 7))  # 1 week

# --- Startup ---
SEED_DEMO_DATA = os.getenv("SEED_DEMO_DATA", "true").lower() == "true"

# --- HTTP ---
CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",")]

# --- Logging ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
