# runtime settings, read once from the environment
import os

API_BASE_URL = os.getenv("POS_API_URL", "http://localhost:4000")

# seconds; 0 disables the timeout
API_TIMEOUT = float(os.getenv("POS_API_TIMEOUT", "30"))

SESSION_DB_PATH = os.getenv("POS_SESSION_DB", "data/session.sqlite")

LOG_FILE = os.getenv("POS_LOG_FILE")

SEARCH_DEBOUNCE = 0.3
PAGE_SIZES = (10, 25, 50, 100)
DEFAULT_PAGE_SIZE = 10

# backend caps limit at 100
DASHBOARD_PRODUCT_SAMPLE = 100
