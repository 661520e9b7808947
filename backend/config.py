import os
from dotenv import load_dotenv

load_dotenv()

ES_HOST = os.getenv("ES_HOST", "http://localhost:9200")
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

MOVEMENT_THRESHOLD = float(os.getenv("MOVEMENT_THRESHOLD", "10"))
MOVEMENT_LOOKBACK_MINUTES = int(os.getenv("MOVEMENT_LOOKBACK_MINUTES", "60"))
POLL_INTERVAL_MINUTES = int(os.getenv("POLL_INTERVAL_MINUTES", "5"))
MARKET_FETCH_LIMIT = int(os.getenv("MARKET_FETCH_LIMIT", "100"))
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))
AUTO_START_COLLECTOR = os.getenv("AUTO_START_COLLECTOR", "false").lower() in ("1", "true", "yes")
