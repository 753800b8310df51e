import logging
import os

from dotenv import load_dotenv

load_dotenv()


def _csv(value: str) -> list:
    return [part.strip() for part in value.split(",") if part.strip()]


DATABASE_URL = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "pizzaunlimited")

CORS_ORIGINS = _csv(os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:8080"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Admin tokens
ADMIN_EMAILS = set(_csv(os.getenv("ADMIN_EMAILS", os.getenv("ADMIN_EMAIL", ""))))
ADMIN_JWT_SECRET = os.getenv("ADMIN_JWT_SECRET", "dev-admin-secret")
ADMIN_TOKEN_TTL_DAYS = int(os.getenv("ADMIN_TOKEN_TTL_DAYS", "7"))

# Customer session tokens (Clerk)
CLERK_JWT_KEY = os.getenv("CLERK_JWT_KEY", "").replace("\\n", "\n")
CLERK_AUTHORIZED_PARTIES = _csv(os.getenv("CLERK_AUTHORIZED_PARTIES", ""))

# Conditional writes and cascades
WRITE_RETRIES = int(os.getenv("WRITE_RETRIES", "3"))
RETRY_SLEEP_SECONDS = float(os.getenv("RETRY_SLEEP_SECONDS", "0.5"))

# Invoice
GST_RATE = float(os.getenv("GST_RATE", "0.18"))
SERVICE_FEE = float(os.getenv("SERVICE_FEE", "20"))
CURRENCY = os.getenv("CURRENCY", "INR")
UPI_ID = os.getenv("UPI_ID", "yourupi@bank")
UPI_PAYEE_NAME = os.getenv("UPI_PAYEE_NAME", "PizzaUnlimited")


def configure_logging() -> None:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
