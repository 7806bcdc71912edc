import dotenv
import os

dotenv.load_dotenv()

PORT = int(os.getenv("PORT", "8000"))
DEBUG_MODE = os.getenv("DEBUG_MODE", "false").lower() in ("1", "true", "yes")

# "gemini" or "openrouter"
LLM_PROVIDER = os.getenv("LLM_PROVIDER", "gemini")

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")

OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY")
OPENROUTER_MODEL = os.getenv("OPENROUTER_MODEL", "google/gemini-2.0-flash-001")

# Seconds allowed for one generation round trip
GENERATION_TIMEOUT = float(os.getenv("GENERATION_TIMEOUT", "30"))

PREVIEW_BASE_URL = os.getenv("PREVIEW_BASE_URL", "https://example.com/")

# When set, every endpoint except /health requires "Authorization: Bearer <API_TOKEN>"
API_TOKEN = os.getenv("API_TOKEN")

# Comma separated list of origins allowed to call the API
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]


if not PORT:
    raise ValueError("PORT is not set")

if LLM_PROVIDER == "gemini" and not GEMINI_API_KEY:
    print("Warning: GEMINI_API_KEY is not set. Generation requests will fail.")

if LLM_PROVIDER == "openrouter" and not OPENROUTER_API_KEY:
    print("Warning: OPENROUTER_API_KEY is not set. Generation requests will fail.")
