"""FastAPI server exposing the active bill to a phone or browser front end."""

from __future__ import annotations

import json
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from splitsnap.application.bills.capture import PriceExtractor, build_strategy
from splitsnap.application.bills.session import BillSession
from splitsnap.domain.assignment_cycle import parse_assignment
from splitsnap.domain.bill import Assignment
from splitsnap.domain.errors import (
    DecodeFailure,
    ImageProcessingFailure,
    InvalidManualEntry,
    InvalidSelection,
    ItemNotFound,
    RecognitionFailure,
    SplitSnapError,
)
from splitsnap.runtime.logging import get_logger
from splitsnap.runtime.settings import get_settings

logger = get_logger(__name__)

# Checked in order; subclasses first
_ERROR_STATUS: list[tuple[type[SplitSnapError], int]] = [
    (ItemNotFound, 404),
    (DecodeFailure, 400),
    (ImageProcessingFailure, 422),
    (InvalidManualEntry, 422),
    (InvalidSelection, 422),
    (RecognitionFailure, 502),
]


def _status_for(exc: SplitSnapError) -> int:
    for error_type, status_code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 400


def _split(value: Any) -> list[str]:
    """Split a ``;``-separated form field into entries."""
    if not value:
        return []
    return [part.strip() for part in str(value).split(";") if part.strip()]


async def _json_body(request: Request) -> dict[str, Any]:
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise InvalidManualEntry("Request body must be JSON") from None
    if not isinstance(payload, dict):
        raise InvalidManualEntry("Request body must be a JSON object")
    return payload


def _optional_text(payload: dict[str, Any], key: str) -> str | None:
    value = payload.get(key)
    return None if value is None else str(value)


def create_app(session: BillSession | None = None, extractor: PriceExtractor | None = None) -> FastAPI:
    """Build the app around one process-wide bill session."""
    settings = get_settings()
    app = FastAPI(title="Bill Splitter")
    app.state.session = session or BillSession(
        settings.person_a_label,
        settings.person_b_label,
        assumed_tax_rate=settings.assumed_tax_rate,
    )
    app.state.extractor = extractor

    def current_session() -> BillSession:
        return app.state.session

    def current_extractor() -> PriceExtractor:
        if app.state.extractor is None:
            app.state.extractor = PriceExtractor.from_settings(settings)
        return app.state.extractor

    @app.exception_handler(SplitSnapError)
    async def handle_split_error(request: Request, exc: SplitSnapError) -> JSONResponse:
        status_code = _status_for(exc)
        if status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse({"status": "error", "message": str(exc)}, status_code=status_code)

    @app.post("/bill")
    async def upload_bill(request: Request) -> JSONResponse:
        """Receive a bill photo, OCR it and return the candidate prices."""
        form = await request.form()

        file = None
        for key, value in form.items():
            logger.debug("Form field: key=%r, type=%s", key, type(value))
            if hasattr(value, "read"):
                file = value
                break

        if not file:
            return JSONResponse({"status": "error", "message": "No file found in request"}, status_code=400)

        strategy = build_strategy(
            str(form.get("mode") or "whole"),
            regions=_split(form.get("regions")),
            points=_split(form.get("points")),
            display=str(form.get("display") or "") or None,
            settings=settings,
        )
        contents = await file.read()
        bill = current_session()
        bill.start(contents)
        outcome = await bill.scan(current_extractor(), strategy)

        if outcome.stale:
            message = "Bill was reset while scanning"
        elif outcome.added:
            message = f"Found {outcome.added} prices"
        else:
            message = "No prices found. Add them manually."
        return JSONResponse(
            {
                "status": "success",
                "scan_status": "candidates_found" if outcome.added else "no_candidates",
                "message": message,
                "bill": bill.snapshot(),
            }
        )

    @app.get("/bill")
    async def get_bill() -> dict[str, Any]:
        return current_session().snapshot()

    @app.post("/bill/items")
    async def add_item(request: Request) -> dict[str, Any]:
        payload = await _json_body(request)
        assignment = payload.get("assignment")
        current_session().add_manual_item(
            str(payload.get("amount", "")),
            parse_assignment(str(assignment)) if assignment else Assignment.SHARED,
        )
        return current_session().snapshot()

    @app.delete("/bill/items/{item_id}")
    async def remove_item(item_id: str) -> dict[str, Any]:
        current_session().remove_item(item_id)
        return current_session().snapshot()

    @app.post("/bill/items/{item_id}/cycle")
    async def cycle_item(item_id: str) -> dict[str, Any]:
        current_session().cycle_assignment(item_id)
        return current_session().snapshot()

    @app.put("/bill/items/{item_id}/assignment")
    async def assign_item(item_id: str, request: Request) -> dict[str, Any]:
        payload = await _json_body(request)
        current_session().set_assignment(item_id, parse_assignment(str(payload.get("assignment", ""))))
        return current_session().snapshot()

    @app.put("/bill/tax")
    async def set_tax(request: Request) -> dict[str, Any]:
        payload = await _json_body(request)
        current_session().set_tax(_optional_text(payload, "amount"))
        return current_session().snapshot()

    @app.put("/bill/tip")
    async def set_tip(request: Request) -> dict[str, Any]:
        payload = await _json_body(request)
        current_session().set_tip(_optional_text(payload, "percent"))
        return current_session().snapshot()

    @app.put("/bill/total")
    async def set_total(request: Request) -> dict[str, Any]:
        payload = await _json_body(request)
        current_session().set_declared_total(_optional_text(payload, "amount"))
        return current_session().snapshot()

    @app.put("/bill/labels")
    async def set_labels(request: Request) -> dict[str, Any]:
        payload = await _json_body(request)
        current_session().set_labels(_optional_text(payload, "person_a"), _optional_text(payload, "person_b"))
        return current_session().snapshot()

    @app.post("/bill/reset")
    async def reset_bill() -> dict[str, Any]:
        current_session().reset()
        return current_session().snapshot()

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok"}

    return app
