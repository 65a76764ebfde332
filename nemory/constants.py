"""Centralized application constants: single source of truth for hardcoded values."""

# --- Notion API ---
NOTION_API_BASE = "https://api.notion.com/v1"
NOTION_SEARCH_URL = f"{NOTION_API_BASE}/search"
NOTION_BLOCK_CHILDREN_URL = NOTION_API_BASE + "/blocks/{block_id}/children"
NOTION_CHILDREN_PAGE_SIZE = 100
NOTION_REQUEST_DELAY = 0.35  # seconds between per-document fetches (~3 req/s limit)
NOTION_MAX_BLOCK_DEPTH = 3

# --- Content discovery ---
DEFAULT_CONTENT_WINDOW_DAYS = 14
EXTENDED_CONTENT_WINDOW_DAYS = 30
MOST_RECENT_FALLBACK_COUNT = 5
MAX_DOCUMENTS_PER_RUN = 10

# --- Content extraction ---
MAX_CONTENT_CHARS = 15000
CONTENT_TRUNCATION_MARKER = "\n\n[... content truncated ...]"

# --- Gemini ---
GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
GEMINI_SAFETY_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)
GEMINI_SAFETY_THRESHOLD = "BLOCK_MEDIUM_AND_ABOVE"
MAX_OUTPUT_TOKENS = {"short": 300, "medium": 600, "long": 1000}

# --- Telegram ---
TELEGRAM_API_BASE = "https://api.telegram.org/bot{token}"
TELEGRAM_MAX_MESSAGE_LENGTH = 4096
TELEGRAM_PARSE_MODE = "HTML"

# --- HTTP Client ---
HTTP_TOTAL_TIMEOUT = 180  # seconds
HTTP_CONNECT_TIMEOUT = 10  # seconds
NOTION_API_TIMEOUT = 30  # seconds
TELEGRAM_API_TIMEOUT = 30  # seconds

# --- Worker ---
ARQ_MAX_JOBS = 1
ARQ_JOB_TIMEOUT = 900  # seconds (15 min), whole invocation budget
DAILY_INVOCATION_HOUR = 9  # UTC

# --- Status ---
RECENT_EXECUTIONS_LIMIT = 10
RECENT_REQUESTS_MAX_SIZE = 10000  # tracked manual-trigger keys
