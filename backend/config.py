# backend/config.py
# Environment-aware configuration for the Project Tracker backend

import os
from typing import Literal

# Environment detection
ENV: Literal["dev", "staging", "prod"] = os.environ.get("ENV", "dev")  # type: ignore
IS_DEV = (ENV == "dev")
IS_STAGING = (ENV == "staging")
IS_PROD = (ENV == "prod")

# JWT session configuration
SECRET_KEY = os.environ.get("SECRET_KEY", "change-me-in-production")
ALGORITHM = "HS256"

# Session token lifetime
TOKEN_HOURS = int(os.environ.get("TOKEN_HOURS", "24"))

# Database configuration
# Relative paths are resolved against the backend directory
DATABASE_PATH = os.environ.get("DATABASE_PATH", "project_tracker.db")

# Owner allow-list (JSON list of {"username", "password"} objects)
OWNERS_FILE = os.environ.get("OWNERS_FILE", "owners.json")
OWNER_EMAIL_DOMAIN = os.environ.get("OWNER_EMAIL_DOMAIN", "company.com")

# bcrypt cost factor (log2 rounds)
BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

# Seconds a unit of work waits for the SQLite write lock
DB_BUSY_TIMEOUT_SECONDS = float(os.environ.get("DB_BUSY_TIMEOUT_SECONDS", "10"))

# CORS origins (expand for staging/prod)
CORS_ORIGINS = [
    "http://localhost:8501",  # Streamlit default
    "http://127.0.0.1:8501",
]

if IS_STAGING or IS_PROD:
    extra_origins = os.environ.get("CORS_ORIGINS", "")
    if extra_origins:
        CORS_ORIGINS.extend(o.strip() for o in extra_origins.split(",") if o.strip())

if IS_PROD and SECRET_KEY == "change-me-in-production":
    print("[CONFIG] WARNING: SECRET_KEY is using the development default")

print(f"[CONFIG] Environment: {ENV}")
print(f"[CONFIG] Database: {DATABASE_PATH}")
print(f"[CONFIG] Session token: {TOKEN_HOURS} hours")
