import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "presence_check"),
}

FACE_MATCH_THRESHOLD = float(os.getenv("FACE_MATCH_THRESHOLD", "0.55"))

SLOT_RADIUS_METERS = float(os.getenv("SLOT_RADIUS_METERS", "200"))
SLOT_DURATION_MINUTES = float(os.getenv("SLOT_DURATION_MINUTES", "20"))

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", "logs/app.log")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
