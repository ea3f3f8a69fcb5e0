"""
MedHelp FastAPI Server

REST API over the record store and AI-assisted intake.

Usage:
    uvicorn medhelp.server:app --reload --port 8000

Endpoints:
    GET    /api/v1/health            - Health check
    GET    /api/v1/records           - List/search records (?q=&date=)
    POST   /api/v1/records           - Create record
    GET    /api/v1/records/{id}      - Get record
    PATCH  /api/v1/records/{id}      - Update record
    DELETE /api/v1/records/{id}      - Delete record
    POST   /api/v1/extract           - Extract draft fields from text
    POST   /api/v1/transcribe        - Transcribe an audio file

The caller's identity comes from the X-User-Id header (with optional
X-User-Name and X-User-Email). These headers are trusted as given, so the
server must run behind an authenticating proxy that sets them and strips
any client-supplied values. Cross-origin requests are allowed without
credentials.

Author: Cleansheet LLC
License: CC BY 4.0
"""

from typing import Optional, Union
import logging

from fastapi import Depends, FastAPI, File, Header, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from medhelp import __version__
from medhelp.capture.audio_utils import AudioSegment
from medhelp.capture.voice_recorder import NO_SPEECH_MESSAGE
from medhelp.errors import (
    AuthenticationRequiredError,
    MedHelpError,
    NotFoundError,
    PermissionDeniedError,
    PersistenceError,
    TranscriptionError,
    ValidationError,
)
from medhelp.extraction.extraction_types import merge_draft
from medhelp.identity import StaticIdentityProvider, User
from medhelp.pipeline.config import AppConfig
from medhelp.pipeline.session import ClinicSession
from medhelp.records.backends import RecordBackend
from medhelp.records.store import RecordStore

logger = logging.getLogger(__name__)

_STATUS_CODES = {
    NotFoundError: 404,
    ValidationError: 422,
    AuthenticationRequiredError: 401,
    PermissionDeniedError: 403,
    PersistenceError: 503,
    TranscriptionError: 502,
}


# =============================================================================
# Request/Response Models
# =============================================================================

class RecordFields(BaseModel):
    """Editable record fields; all optional so partial updates share the model."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    age: Optional[Union[int, str]] = None
    gender: Optional[str] = None
    history: Optional[str] = None
    symptoms: Optional[str] = None
    tests: Optional[str] = None
    allergies: Optional[str] = None
    possible_condition: Optional[str] = Field(None, alias="possibleCondition")
    recommendations: Optional[str] = None


class ExtractRequest(BaseModel):
    """Request body for extraction."""

    text: str
    form: Optional[dict[str, str]] = None


class HealthResponse(BaseModel):
    status: str
    version: str
    storage_backend: str
    extraction_backends: list[str]


# =============================================================================
# App Factory
# =============================================================================

def create_app(
    config: AppConfig | None = None,
    backend: RecordBackend | None = None,
    session: ClinicSession | None = None,
) -> FastAPI:
    """Create the API application."""
    config = config or AppConfig.from_env()
    session = session or ClinicSession(config, StaticIdentityProvider(), backend)

    app = FastAPI(
        title="MedHelp API",
        description="Clinical note-taking with AI-assisted intake",
        version=__version__,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.session = session

    @app.exception_handler(MedHelpError)
    async def medhelp_error_handler(request: Request, exc: MedHelpError) -> JSONResponse:
        status = next(
            (code for cls, code in _STATUS_CODES.items() if isinstance(exc, cls)), 500
        )
        if status >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(
            status_code=status,
            content={"error": exc.message, "code": exc.error_code, "details": exc.details},
        )

    def current_user(
        x_user_id: Optional[str] = Header(None),
        x_user_name: Optional[str] = Header(None),
        x_user_email: Optional[str] = Header(None),
    ) -> User:
        if not x_user_id:
            raise AuthenticationRequiredError()
        return User(id=x_user_id, name=x_user_name or x_user_email or "User", email=x_user_email or "")

    def user_store(user: User = Depends(current_user)) -> RecordStore:
        return RecordStore(session.backend, StaticIdentityProvider(user), tz=config.tzinfo)

    @app.get("/api/v1/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(
            status="ok",
            version=__version__,
            storage_backend=config.storage.backend,
            extraction_backends=list(config.extraction.backends),
        )

    @app.get("/api/v1/records")
    def list_records(
        q: str = Query("", description="Search name, symptoms, history"),
        date: str = Query("", description="dd/mm/yy or dd/mm/yyyy"),
        store: RecordStore = Depends(user_store),
    ) -> dict:
        records = store.filter(q, date)
        return {"records": [r.to_dict() for r in records], "count": len(records)}

    @app.post("/api/v1/records", status_code=201)
    def create_record(fields: RecordFields, store: RecordStore = Depends(user_store)) -> dict:
        record = store.add(fields.model_dump(exclude_none=True))
        return record.to_dict()

    @app.get("/api/v1/records/{record_id}")
    def get_record(record_id: str, store: RecordStore = Depends(user_store)) -> dict:
        return store.get(record_id).to_dict()

    @app.patch("/api/v1/records/{record_id}")
    def update_record(
        record_id: str, fields: RecordFields, store: RecordStore = Depends(user_store)
    ) -> dict:
        return store.update(record_id, fields.model_dump(exclude_unset=True)).to_dict()

    @app.delete("/api/v1/records/{record_id}", status_code=204)
    def delete_record(record_id: str, store: RecordStore = Depends(user_store)) -> None:
        store.delete(record_id)

    @app.post("/api/v1/extract")
    def extract(body: ExtractRequest, user: User = Depends(current_user)) -> dict:
        result = session.intake.extract(body.text)
        response = result.to_dict()
        if body.form is not None:
            response["form"] = merge_draft(body.form, result.draft)
        return response

    @app.post("/api/v1/transcribe")
    async def transcribe(
        audio: UploadFile = File(...), user: User = Depends(current_user)
    ) -> JSONResponse:
        content = await audio.read()
        try:
            segment = AudioSegment.from_bytes(content)
        except (RuntimeError, ValueError) as e:
            return JSONResponse(status_code=400, content={"error": f"Unreadable audio: {e}"})

        transcript = session.transcriber.transcribe(segment)
        min_confidence = config.transcription.min_confidence
        if transcript.is_empty or transcript.confidence < min_confidence:
            return JSONResponse(content={"success": False, "text": "", "error": NO_SPEECH_MESSAGE})
        return JSONResponse(
            content={"success": True, "text": transcript.text, "confidence": transcript.confidence}
        )

    return app


app = create_app()
