import logging

import uvicorn

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

# Your configuration and DB
from chatconnect.config import settings
from chatconnect.core.db import init_db, close_db
from chatconnect.core.store import DocumentStore, StoreError
from chatconnect.core.tortoise_store import TortoiseDocumentStore
from chatconnect.services import FriendService, MessageService, ProfileService, RoomPairingService
from chatconnect.services.results import store_failure

from chatconnect.api.v1.routers import auth, rooms, messages, friends, users
from chatconnect.api.v1.routers.ws_rooms import router as ws_rooms_router

logger = logging.getLogger("uvicorn.error")

def install_services(app: FastAPI, store: DocumentStore) -> None:
    """
    Attach one document store and the services built on it to the app.
    Routers reach them through the dependencies in chatconnect.api.v1.deps.
    """
    app.state.store = store
    app.state.rooms = RoomPairingService(store)
    app.state.profiles = ProfileService(store)
    app.state.messages = MessageService(store)
    app.state.friends = FriendService(store, app.state.profiles)

app = FastAPI(title=settings.APP_NAME)
install_services(app, TortoiseDocumentStore(app_id=settings.app_id, online=not settings.store_offline))

# CORS (with Cookie)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(StoreError)
async def on_store_error(request: Request, exc: StoreError):
    # Reads outside a service command (listings, lookups) fail here
    return JSONResponse(status_code=503, content=store_failure(exc, request.url.path).to_dict())

@app.on_event("startup")
async def on_startup():
    await init_db()
    logger.info("[startup] document store ready (app_id=%s, online=%s)",
                settings.app_id, app.state.store.online)

@app.on_event("shutdown")
async def on_shutdown():
    await close_db()

# REST
app.include_router(auth.router, prefix="/api/v1")
app.include_router(rooms.router, prefix="/api/v1")
app.include_router(messages.router, prefix="/api/v1")
app.include_router(friends.router, prefix="/api/v1")
app.include_router(users.router, prefix="/api/v1")

# WebSocket
app.include_router(ws_rooms_router)

@app.get("/healthz")
def healthz():
    return {"ok": True}

def run():
    """Serve the app with uvicorn on the configured host/port (the `chatconnect` console script)."""
    uvicorn.run("chatconnect.main:app", host=settings.host, port=settings.port)

if __name__ == "__main__":
    run()
