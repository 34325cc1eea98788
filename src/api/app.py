"""FastAPI application exposing contact-card field extraction."""
from __future__ import annotations
import json
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from src.card.aggregator import FieldAggregator
from src.card.config import Settings, load_settings
from src.card.validation import OcrLinesValidationError, parse_ocr_lines
from src.ner.models import ExtractionResult
from src.ner.recognizer import TaggerHandle

log = logging.getLogger(__name__)


def get_tagger(request: Request) -> TaggerHandle:
    return request.app.state.tagger


def create_app(settings: Optional[Settings] = None,
               tagger: Optional[TaggerHandle] = None) -> FastAPI:
    """Build the app; ``tagger`` replaces the HuggingFace-backed handle."""
    settings = settings or load_settings()
    handle = tagger or TaggerHandle.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.warmup:
            log.info("Warming up tagger: %s", settings.model_name)
            app.state.tagger.warm()
        yield

    app = FastAPI(
        title="Business Card NER API",
        description="Extract name, company, address and designation from OCR lines.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.tagger = handle

    @app.post("/extract")
    async def extract(request: Request, tagger: TaggerHandle = Depends(get_tagger)):
        """Extract structured card fields from OCR lines."""
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            body = None
        try:
            lines = parse_ocr_lines(body)
        except OcrLinesValidationError as e:
            return JSONResponse({"error": str(e)}, status_code=400)

        try:
            result: ExtractionResult = await FieldAggregator(tagger).extract(lines)
        except Exception:
            log.exception("Extraction failed for %d OCR lines", len(lines))
            return JSONResponse({"error": "Internal server error"}, status_code=500)
        return JSONResponse(result.model_dump(exclude_none=True))

    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {"status": "ok", "model_loaded": app.state.tagger.is_loaded}

    return app


app = create_app()
