from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from WillChat.config import DATABASE_URL


def _connect_args(url: str) -> dict:
    # SQLite connections are handed across the event loop's worker threads by FastAPI
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {"connect_timeout": 5}


engine = create_engine(DATABASE_URL, pool_pre_ping=True, connect_args=_connect_args(DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()
