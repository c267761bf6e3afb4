# backend/cafe_pos/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/cafe_pos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///cafe_pos.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Time clock photos (base64 uploads) land in UPLOAD_FOLDER/timelogs
    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER", os.path.join(os.getcwd(), "uploads"))
    MAX_PHOTO_BYTES = 5 * 1024 * 1024

    # PIN hashing cost; tests lower this
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    # Timekeeping
    MAX_SHIFT_HOURS = 24
    OVERTIME_THRESHOLD_HOURS = 8
    LONG_SHIFT_WARNING_HOURS = 24

    # Stock
    LOW_STOCK_THRESHOLD = 5
    EXPIRATION_WINDOW_DAYS = 7
    # Batch expiration dates are local calendar dates (Asia/Manila, UTC+8)
    STORE_UTC_OFFSET_HOURS = int(os.environ.get("STORE_UTC_OFFSET_HOURS", "8"))

    # Payroll
    STANDARD_WORKDAY_HOURS = 8
    OVERTIME_PAY_MULTIPLIER = "1.25"

    ERROR_TRACKER_CAPACITY = 50

    CORS_ALLOWED_ORIGINS = (
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://localhost:5174",
    )
