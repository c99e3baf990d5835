"""
CodeMentor Configuration
Database, auth, mentor service and gameplay settings
"""

import os

from dotenv import load_dotenv

load_dotenv()

# MongoDB
MONGO_URL = os.getenv("MONGO_URL", "mongodb://localhost:27017")
MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "codementor_db")

# Auth
JWT_SECRET = os.getenv("JWT_SECRET", "change-me-in-production")
JWT_ALGORITHM = "HS256"
JWT_EXPIRES_DAYS = int(os.getenv("JWT_EXPIRES_DAYS", "7"))
MIN_PASSWORD_LENGTH = 6

# Mentor inference endpoint (Together-style completion API)
MENTOR_API_URL = os.getenv("MENTOR_API_URL", "https://api.together.xyz/inference")
MENTOR_API_KEY = os.getenv("MENTOR_API_KEY", "")
MENTOR_MODEL = os.getenv("MENTOR_MODEL", "mistralai/Mistral-7B-Instruct-v0.2")
MENTOR_TIMEOUT_SECONDS = float(os.getenv("MENTOR_TIMEOUT_SECONDS", "30"))
MENTOR_MAX_RETRIES = 3
MENTOR_RETRY_DELAY_SECONDS = 1.0

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_DIR = os.getenv("LOG_DIR", os.path.join(os.path.dirname(__file__), "logs"))

# CORS
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# Gameplay
QUIZ_PASS_THRESHOLD = 70
XP_PER_LEVEL = 1000
XP_PER_LESSON_MINUTE = 2
DEFAULT_LESSON_DURATION = 5
STREAK_WINDOW_MIN_HOURS = 20
STREAK_WINDOW_MAX_HOURS = 28
