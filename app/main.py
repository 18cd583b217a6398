from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from app.core.config import settings
from app.core.errors import BookingError, ErrorKind, ValidationError
from app.core.logging import configure_logging
from app.api.v1.api import api_router

configure_logging()

app = FastAPI(title=settings.APP_NAME)

# CORS: use CORS_ORIGINS from env in production; default to localhost for dev
_default_origins = [
    "http://127.0.0.1:3000", "http://localhost:3000",
]
_origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()] if settings.CORS_ORIGINS else _default_origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.POLICY: 422,
    ErrorKind.INTERNAL: 500,
}


@app.exception_handler(BookingError)
def booking_error_handler(request: Request, exc: BookingError):
    body = exc.to_dict()
    if exc.kind == ErrorKind.INTERNAL:
        # cause was logged where it happened; keep storage details out of the response
        logger.error("{} {} -> {}", request.method, request.url.path, exc)
        body["messages"] = ["Something went wrong, please try again"]
    return JSONResponse(status_code=STATUS_BY_KIND[exc.kind], content={"detail": body})


@app.exception_handler(RequestValidationError)
def request_validation_handler(request: Request, exc: RequestValidationError):
    # malformed JSON or wrong field types; reported in the same shape as service-level validation
    messages = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
        messages.append(f"{field}: {err.get('msg')}" if field else err.get("msg", "Invalid request"))
    return booking_error_handler(request, ValidationError(messages))


app.include_router(api_router)


@app.get("/health")
def health():
    return {"status": "ok"}
