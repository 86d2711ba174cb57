from __future__ import annotations  # FastAPI server exposing the AI interviewer

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routes import router as interview_router
from config.settings import settings
from errors import AuthError, InterviewError, NotAuthenticatedError, ValidationError
from storage import migrate


logger = logging.getLogger(__name__)

app = FastAPI(title="AI Interviewer API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials="*" not in settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"]
)
app.include_router(interview_router)


@app.on_event("startup")
def on_startup() -> None:  # Ensure the chat tables exist before the first request
    migrate()
    if not settings.GEMINI_API_KEY:
        logger.warning("GEMINI_API_KEY is not set; interviews will report a configuration error")


@app.exception_handler(InterviewError)
def interview_error_handler(request: Request, exc: InterviewError) -> JSONResponse:  # Map escaped domain errors
    status = 500
    if isinstance(exc, ValidationError):
        status = 422
    elif isinstance(exc, (NotAuthenticatedError, AuthError)):
        status = 401
    logger.warning("Request %s failed: %s", request.url.path, exc)
    return JSONResponse(status_code=status, content={"detail": str(exc)})


@app.get("/health")
def health() -> dict:  # Liveness probe for the front end
    return {"status": "ok"}
