import os
from dotenv import load_dotenv

# Load variables from .env file
load_dotenv()


def _split(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings:
    PROJECT_NAME: str = "Chapter Quest"
    VERSION: str = "1.0.0"

    # Database (sqlite by default, any SQLAlchemy URL works)
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./chapter_quest.db")

    # AI Keys (a backend is only registered when its key is set)
    GROQ_API_KEY: str = os.getenv("GROQ_API_KEY")
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY")
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY")

    DEFAULT_AI_PROVIDER: str = os.getenv("DEFAULT_AI_PROVIDER", "groq")

    # Model cascades, tried in order inside each backend
    GROQ_MODELS: list[str] = _split(os.getenv(
        "GROQ_MODELS", "llama-3.3-70b-versatile,openai/gpt-oss-120b,llama-3.1-8b-instant"
    ))
    OPENAI_MODELS: list[str] = _split(os.getenv("OPENAI_MODELS", "gpt-4o-mini,gpt-3.5-turbo"))
    GEMINI_MODELS: list[str] = _split(os.getenv("GEMINI_MODELS", "gemini-2.5-flash,gemini-2.0-flash"))
    GEMINI_API_VERSIONS: list[str] = _split(os.getenv("GEMINI_API_VERSIONS", "v1,v1beta"))

    # Per-attempt timeout for every backend call
    BACKEND_TIMEOUT_SECONDS: float = float(os.getenv("BACKEND_TIMEOUT_SECONDS", "30"))

    # Narrative policy
    EVENING_HOUR: int = int(os.getenv("EVENING_HOUR", "18"))
    CONTINUITY_TAIL_CHARS: int = int(os.getenv("CONTINUITY_TAIL_CHARS", "200"))
    PERSIST_CONFLICT_RETRIES: int = int(os.getenv("PERSIST_CONFLICT_RETRIES", "3"))

    # Optional push gateway for "new chapter" events
    NOTIFICATION_WEBHOOK_URL: str = os.getenv("NOTIFICATION_WEBHOOK_URL")

    LOG_DIR: str = os.getenv("LOG_DIR", "logs")

settings = Settings()
