import time

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from quizgen.db import init_db
from quizgen.errors import QuizGenError
from quizgen.middleware.rate_limit import limiter
from quizgen.routers import practice as practice_router
from quizgen.routers import questions as questions_router
from quizgen.schemas import invalid_input_from_errors
from quizgen.services.logging import bind_request_context, configure_logging, log_api_request
from quizgen.services.monitoring import health_checker, get_metrics, REQUEST_COUNT, REQUEST_DURATION

# Configure logging
configure_logging()
logger = structlog.get_logger()

app = FastAPI(
    title="QuizGen",
    description="Generate quiz question sets from documents and practice them",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(QuizGenError)
async def quizgen_error_handler(request: Request, exc: QuizGenError):
    log_api_request(request, error=exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "detail": exc.message},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed or missing request fields are reported like any other InvalidInput"""
    return await quizgen_error_handler(request, invalid_input_from_errors(exc.errors()))


# Request logging and metrics
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    request_id = bind_request_context(request)
    start_time = time.time()
    log_api_request(request)

    response = await call_next(request)

    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    response.headers["X-Request-ID"] = request_id

    REQUEST_COUNT.labels(
        method=request.method,
        endpoint=request.url.path,
        status=response.status_code
    ).inc()

    REQUEST_DURATION.labels(
        method=request.method,
        endpoint=request.url.path
    ).observe(process_time)

    response.duration_ms = round(process_time * 1000, 1)
    log_api_request(request, response)

    return response


# ----------------- Health & Monitoring Endpoints -----------------
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return health_checker.get_health_status()


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint"""
    return get_metrics()


# ----------------- Startup -----------------
@app.on_event("startup")
def on_startup():
    init_db()


# ----------------- Routers -----------------
app.include_router(questions_router.router)
app.include_router(practice_router.router)
