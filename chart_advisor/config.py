import os
from dotenv import load_dotenv

# Load environment variables from the .env file when one is present
load_dotenv()


# Logging configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Application settings
DEBUG_MODE = os.getenv("DEBUG_MODE", "False").lower() == "true"

# Query log configuration (question -> SQL -> chosen chart history)
QUERY_LOG_FILE = os.getenv("QUERY_LOG_FILE", "logs/sql-queries.json")
QUERY_LOG_MAX_RESULT_ROWS = int(os.getenv("QUERY_LOG_MAX_RESULT_ROWS", "100"))

# Result statistics are computed over at most this many rows
STATS_MAX_SAMPLE_ROWS = int(os.getenv("STATS_MAX_SAMPLE_ROWS", "500"))
