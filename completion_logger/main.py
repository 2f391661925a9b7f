"""
Demo widget service - FastAPI entry point.

Exercises every completion outcome of the request logger:
- /widgets (fixed JSON bodies with a declared length)
- /widgets/export (NDJSON stream, size counted on the fly)
- /widgets/{id} (404 via HTTPException, 204 on delete)
- /maintenance (unhandled error carrying a 503)
"""

from __future__ import annotations

import json
from typing import AsyncIterator, List, Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Response
from fastapi.responses import JSONResponse, StreamingResponse

from completion_logger.config import settings
from completion_logger.middleware import RequestReceivedMiddleware, completion_logging_middleware
from completion_logger.models import Widget, WidgetCreate
from completion_logger.sink import LoggerConfig


class MaintenanceModeError(Exception):
    """
    Raised by routes that are switched off; left unhandled on purpose.
    """

    status_code = 503

    def __init__(self, message: str = "Service is in maintenance mode.") -> None:
        super().__init__(message)


def create_app(options: LoggerConfig = None, *, color: Optional[bool] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.
    """
    app = FastAPI(title=settings.service_name)

    # Middleware: completion logging, with the receive stamp outermost
    app.middleware("http")(completion_logging_middleware(options, color=color))
    app.add_middleware(RequestReceivedMiddleware)

    app.state.widgets = {}
    app.state.next_widget_id = 1

    @app.get("/health")
    async def health() -> JSONResponse:
        return JSONResponse(status_code=200, content={"ok": True, "service": settings.service_name})

    @app.get("/widgets")
    async def list_widgets() -> List[Widget]:
        return list(app.state.widgets.values())

    @app.post("/widgets", status_code=201)
    async def create_widget(body: WidgetCreate) -> Widget:
        widget = Widget(id=app.state.next_widget_id, **body.model_dump())
        app.state.widgets[widget.id] = widget
        app.state.next_widget_id += 1
        return widget

    @app.get("/widgets/export")
    async def export_widgets() -> StreamingResponse:
        """
        Stream widgets as NDJSON; no content-length is known up front.
        """
        widgets = list(app.state.widgets.values())

        async def lines() -> AsyncIterator[bytes]:
            for widget in widgets:
                yield (json.dumps(widget.model_dump()) + "\n").encode("utf-8")

        return StreamingResponse(lines(), media_type="application/x-ndjson")

    @app.get("/widgets/{widget_id}")
    async def get_widget(widget_id: int) -> Widget:
        widget = app.state.widgets.get(widget_id)
        if widget is None:
            raise HTTPException(status_code=404, detail="Widget not found.")
        return widget

    @app.delete("/widgets/{widget_id}", status_code=204)
    async def delete_widget(widget_id: int) -> Response:
        if app.state.widgets.pop(widget_id, None) is None:
            raise HTTPException(status_code=404, detail="Widget not found.")
        return Response(status_code=204)

    @app.get("/maintenance")
    async def maintenance() -> JSONResponse:
        raise MaintenanceModeError()

    return app


app = create_app()


def run() -> None:
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
