# expense_tracker/db.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from .config import DATABASE_URL as _RAW_DATABASE_URL


def _normalize_database_url(url: str) -> str:
    # Render 常给 postgres://，SQLAlchemy 需要 postgresql:// 或带 driver
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+psycopg://", 1)
    if url.startswith("postgresql://") and "+psycopg" not in url and "+psycopg2" not in url:
        url = url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


DATABASE_URL = _normalize_database_url(_RAW_DATABASE_URL)

engine = create_engine(
    DATABASE_URL,
    connect_args=_connect_args(DATABASE_URL),
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db(bind=None):
    """建表（已存在的表不动）。bind 默认用全局 engine，测试里传内存库的 engine。"""
    Base.metadata.create_all(bind=bind or engine)
