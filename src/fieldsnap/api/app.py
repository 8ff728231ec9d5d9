"""FastAPI application factory."""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, WebSocket, status

from fieldsnap.api.admin import router as admin_router
from fieldsnap.api.models import (
    CaptureStatusOut,
    GalleryItemOut,
    MapMarkerOut,
    PhotoOut,
    SessionOut,
)
from fieldsnap.app_logging import configure_logging
from fieldsnap.containers import AppContainer
from fieldsnap.domain.photos import PhotoQuery, PhotoRecord
from fieldsnap.errors import (
    CompressionFailure,
    DeviceCaptureError,
    FileNotFound,
    PermissionDenied,
    UploadError,
)
from fieldsnap.services.sync import (
    SyncConsumer,
    gallery_query,
    map_query,
    render_gallery,
    render_map,
)

SurfaceRenderer = Callable[[list[PhotoRecord]], list[dict[str, object]]]


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            await app.state.container.location_provider.setup()
        except Exception:
            logger.exception("Failed to configure the location subsystem")
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/location/status")
    async def location_status(request: Request) -> dict[str, str]:
        """Report the location permission status without prompting."""
        state_container: AppContainer = request.app.state.container
        result = await state_container.location_provider.check_current_status()
        return {"status": result.value}

    @app.get("/capture")
    async def capture_status(request: Request) -> CaptureStatusOut:
        """Return the capture screen state."""
        controller = request.app.state.container.capture_controller
        session = controller.session
        return CaptureStatusOut(
            state=controller.state,
            session=SessionOut.from_session(session) if session else None,
        )

    @app.post("/capture")
    async def capture(request: Request) -> dict[str, object]:
        """Take a photo and tag it with the device position."""
        controller = request.app.state.container.capture_controller
        accepted = controller.can_capture
        try:
            session = await controller.capture()
        except PermissionDenied as exc:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)
            ) from exc
        except DeviceCaptureError as exc:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)
            ) from exc
        if session is None:
            return {"status": "cancelled" if accepted else "ignored"}
        return {
            "status": "ready",
            "session": SessionOut.from_session(session).model_dump(mode="json"),
        }

    @app.post("/capture/upload")
    async def upload(request: Request) -> dict[str, object]:
        """Upload the captured photo and persist its record."""
        controller = request.app.state.container.capture_controller
        try:
            record = await controller.upload()
        except FileNotFound as exc:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)
            ) from exc
        except CompressionFailure as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
            ) from exc
        except UploadError as exc:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)
            ) from exc
        if record is None:
            return {"status": "ignored"}
        return {
            "status": "uploaded",
            "photo": PhotoOut.from_record(record).model_dump(mode="json"),
        }

    @app.delete("/capture")
    async def discard(request: Request) -> dict[str, str]:
        """Discard the captured photo unless it is uploading."""
        controller = request.app.state.container.capture_controller
        if not controller.discard():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT, detail="Upload in progress"
            )
        return {"status": "discarded"}

    @app.get("/photos")
    async def list_photos(request: Request) -> dict[str, object]:
        """Return the gallery rendering of the current snapshot."""
        state_container: AppContainer = request.app.state.container
        records = await state_container.photo_repository.list_photos(gallery_query())
        return {"items": _gallery_payload(records)}

    @app.get("/photos/map")
    async def list_markers(request: Request) -> dict[str, object]:
        """Return the map rendering of the current snapshot."""
        state_container: AppContainer = request.app.state.container
        query = map_query(state_container.settings.map_recency_hours)
        records = await state_container.photo_repository.list_photos(query)
        return {"markers": _map_payload(records)}

    @app.websocket("/ws/gallery")
    async def gallery_feed(websocket: WebSocket) -> None:
        """Stream gallery snapshots until the client goes away."""
        await _stream_surface(websocket, gallery_query(), _gallery_payload)

    @app.websocket("/ws/map")
    async def map_feed(websocket: WebSocket) -> None:
        """Stream map snapshots until the client goes away."""
        settings = websocket.app.state.container.settings
        await _stream_surface(
            websocket, map_query(settings.map_recency_hours), _map_payload
        )

    return app


async def _stream_surface(
    websocket: WebSocket, query: PhotoQuery, render: SurfaceRenderer
) -> None:
    """Own one subscription for the lifetime of a websocket connection."""
    state_container: AppContainer = websocket.app.state.container
    snapshots: asyncio.Queue[list[dict[str, object]]] = asyncio.Queue()
    consumer = SyncConsumer(
        feed=state_container.photo_feed,
        query=query,
        render=lambda records: snapshots.put_nowait(render(records)),
    )
    await websocket.accept()
    await consumer.open()
    try:
        sender = asyncio.create_task(_forward_snapshots(websocket, snapshots))
        receiver = asyncio.create_task(_wait_for_disconnect(websocket))
        _, pending = await asyncio.wait(
            {sender, receiver}, return_when=asyncio.FIRST_COMPLETED
        )
        for task in pending:
            task.cancel()
        await asyncio.gather(sender, receiver, return_exceptions=True)
    finally:
        await consumer.close()


async def _forward_snapshots(
    websocket: WebSocket, snapshots: asyncio.Queue[list[dict[str, object]]]
) -> None:
    while True:
        items = await snapshots.get()
        await websocket.send_json({"items": items})


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


def _gallery_payload(records: list[PhotoRecord]) -> list[dict[str, object]]:
    return [
        GalleryItemOut.from_item(item).model_dump(mode="json")
        for item in render_gallery(records)
    ]


def _map_payload(records: list[PhotoRecord]) -> list[dict[str, object]]:
    return [
        MapMarkerOut.from_marker(marker).model_dump(mode="json")
        for marker in render_map(records)
    ]
