"""FastAPI application entry point for the record integrity bridge."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.logging.logging_setup import setup_logging
from shared.helper.HelperConfig import HelperConfig
from shared.clients.store.DocumentStoreInterface import DocumentStoreInterface
from shared.clients.store.DocumentStoreManager import DocumentStoreManager
from shared.errors.IntegrityError import ConnectionFailed, IntegrityError
from services.record_integrity.RecordService import RecordService
from server.dependencies.errors import integrity_error_handler
from server.routers.RecordRouter import router as record_router

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # when the app starts
    app.state.logging = logging
    app.state.helper_config = HelperConfig(logger=logging)

    store = DocumentStoreManager(helper_config=app.state.helper_config).get_client()
    logging.info("Booting document store client (%s)...", store.get_engine_name())
    await store.boot()
    await check_connection(store)

    app.state.store = store
    app.state.record_service = RecordService(
        helper_config=app.state.helper_config,
        store=store,
        rules=app.state.helper_config.get_integrity_rules(),
    )
    logging.info("Record integrity bridge ready.", color="green")

    # while the app is running...
    yield

    # when the app shuts down, close the store connection
    logging.info("Shutting down, closing document store client...")
    await store.close()
    logging.info("Document store client closed.")


app = FastAPI(
    title="record_integrity_bridge",
    description=(
        "Validation and integrity layer in front of a schemaless document store. "
        "Adds dense per-collection surrogate ids, foreign-key existence checks, "
        "field enumerations, value-kind constraints and shape consistency."
    ),
    version=app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(IntegrityError, integrity_error_handler)
app.include_router(record_router)


async def check_connection(store: DocumentStoreInterface) -> None:
    """Check connectivity to the document store on startup.

    Raises:
        ConnectionFailed: If the store is not reachable. Records cannot be served without it.
    """
    if not await store.do_healthcheck():
        await store.close()
        raise ConnectionFailed(
            f"Document store '{store.get_engine_name()}' is not reachable. Cannot serve records."
        )


if __name__ == "__main__":
    import uvicorn

    logging.info(
        "Starting record integrity bridge v%s on port 8000...",
        app_version,
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
