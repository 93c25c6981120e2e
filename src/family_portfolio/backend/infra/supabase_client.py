# src/family_portfolio/backend/infra/supabase_client.py
import logging
import os

from dotenv import load_dotenv
from supabase import create_client

# -------------------------------------------------------------------
# 1. 환경 변수 (.env) 로드
# -------------------------------------------------------------------
load_dotenv()

DEFAULT_ASSETS_TABLE = "assets"
DEFAULT_HISTORY_TABLE = "asset_history"


def get_assets_table() -> str:
    return os.environ.get("PORTFOLIO_ASSETS_TABLE") or DEFAULT_ASSETS_TABLE


def get_history_table() -> str:
    return os.environ.get("PORTFOLIO_HISTORY_TABLE") or DEFAULT_HISTORY_TABLE


def get_log_level() -> int:
    name = (os.environ.get("LOG_LEVEL") or "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


# -------------------------------------------------------------------
# 2. Supabase 연결 초기화
# -------------------------------------------------------------------
def get_supabase_client():
    url = os.environ.get("SUPABASE_URL")
    key = os.environ.get("SUPABASE_KEY")
    if not url or not key:
        raise RuntimeError("Supabase env not set")
    return create_client(url, key)
