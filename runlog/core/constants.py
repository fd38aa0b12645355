"""
Global constants for runlog.

Centralizes magic numbers used by the store, the remote client and the
interactive selector. Import from here instead of hardcoding values.
"""

# --- Remote service ---

DEFAULT_API_ENDPOINT = "https://api.runlog.io"
PRODUCTION_API_HOST = "api.runlog.io"
PRODUCTION_SHARE_BASE = "https://runlog.io/c"
LOCAL_SHARE_PAGE = "http://localhost:8080/share.html"
CLIENT_ID_HEADER = "X-Source-UUID"
UPLOAD_TIMEOUT = 30          # seconds
DELETE_TIMEOUT = 10          # seconds
MAX_UPLOAD_BYTES = 10 * 1024 * 1024

# --- Local log store ---

CLIENT_ID_FILENAME = "client_id.txt"
LOG_FILE_SUFFIX = ".jsonl"
SUMMARY_LENGTH = 60          # Characters of the first user entry shown as summary
EMPTY_SUMMARY = "Empty conversation"
PREVIEW_CONTENT_LIMIT = 200  # Preview text is cut to this many characters
MILLISECOND_EPOCH_CUTOFF = 1e10  # Numeric timestamps at or above are milliseconds

# --- Active duration heuristic ---

MIN_IDLE_THRESHOLD_MS = 10 * 60 * 1000
IDLE_PERCENTILE = 0.95

# --- Interactive selector ---

SEARCH_DEBOUNCE = 0.5        # seconds
PREVIEW_FETCH_LIMIT = 10000  # Messages fetched when entering preview
HEADER_LINES = 8             # Title, instructions, record line, separator
FOOTER_LINES = 3             # Separator and status line
MIN_PAGE_SIZE = 5
DEFAULT_TERMINAL_HEIGHT = 24
PROJECT_NAME_WIDTH = 40
