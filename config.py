# config.py
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env if present
load_dotenv()

BASE_DIR = Path(__file__).resolve().parent

class Config:
    # Flask
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-change-me")

    # Where generated PDFs are written by save_to_directory / bulk generation
    EXPORTS_DIR = os.getenv("EXPORTS_DIR", (BASE_DIR / "exports").as_posix())

    # Branding shown in the invoice banner and footer
    BRAND_NAME = os.getenv("BRAND_NAME", "QuickBill Pro")
    FOOTER_TEXT = os.getenv(
        "FOOTER_TEXT",
        "Generated by QuickBill Pro - Professional Invoicing Made Simple",
    )

    # Line-item description handling: "truncate" (clip) or "wrap"
    DESCRIPTION_STRATEGY = os.getenv("DESCRIPTION_STRATEGY", "truncate").strip().lower()

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # App URL (useful later for absolute links/emails)
    APP_BASE_URL = os.getenv("APP_BASE_URL", "http://127.0.0.1:5000")
