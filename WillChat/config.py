import os
from pathlib import Path

from dotenv import load_dotenv

_ROOT = Path(__file__).resolve().parents[1]
load_dotenv(_ROOT / ".env", override=False)
load_dotenv(Path(__file__).resolve().parent / ".env", override=False)


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be a number, got {raw!r}.")


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}.")


# Local SQLite file unless DATABASE_URL points somewhere else (works for Railway & local dev)
DATABASE_URL = os.getenv("DATABASE_URL") or "sqlite:///./will_chat.db"
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql+psycopg2://", 1)

COMPLETION_PROVIDER = (os.getenv("COMPLETION_PROVIDER") or "openrouter").strip().lower()
COMPLETION_MODEL = os.getenv("COMPLETION_MODEL") or "meta-llama/llama-3.1-8b-instruct:free"
COMPLETION_TEMPERATURE = _float_env("COMPLETION_TEMPERATURE", 0.7)
COMPLETION_MAX_TOKENS = _int_env("COMPLETION_MAX_TOKENS", 1000)

# Sent as HTTP-Referer / X-Title so OpenRouter can attribute requests to the app
APP_REFERER = os.getenv("APP_REFERER") or "http://localhost:8000"
APP_TITLE = os.getenv("APP_TITLE") or "AI Chat App"

LOG_LEVEL = (os.getenv("LOG_LEVEL") or "INFO").upper()
