# expense_tracker/config.py
import os

from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./local.db")

DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "10"))
MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", "100"))

# CSV 表头，可以换成本地化的标签（逗号分隔，6 列）
CSV_HEADER = os.getenv("CSV_HEADER", "ID,Name,Type,Amount,Date,CreationTimestamp")

CURRENCY_LABEL = os.getenv("CURRENCY_LABEL", "VND")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
