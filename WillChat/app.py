import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from WillChat.config import LOG_LEVEL
from WillChat.database import Base, engine
from WillChat.dependencies import get_conversation_store, peek_conversation_store
from WillChat.models import KeyValueEntry
from WillChat.subapps.chat_routes import router as chat_router
from WillChat.subapps.preferences_routes import router as preferences_router


def _configure_logging() -> None:
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")


_configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine, tables=[KeyValueEntry.__table__])
    yield
    # Let in-flight title updates land before the process exits
    override = app.dependency_overrides.get(get_conversation_store)
    store = override() if override is not None else peek_conversation_store()
    if store is not None:
        await store.wait_for_background_tasks()


app = FastAPI(title="Will Chat", lifespan=lifespan)
app.include_router(chat_router)
app.include_router(preferences_router)
