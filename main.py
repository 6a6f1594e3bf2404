import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from config import get_settings
from database.database import engine
from database.init_db import init_database
from database.models import Base
from routers import calendar, screening_instruments, screenings, screening_results, interventions, goals
from services.exceptions import ErrorKind, ServiceError

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger("innerview")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.seed_database:
        init_database()
    else:
        Base.metadata.create_all(bind=engine)
    logger.info("%s pronta em %s", settings.app_name, settings.api_prefix)
    yield


app = FastAPI(
    title=settings.app_name,
    description="Backend do Innerview para gestão de RTI/MTSS: calendário, rastreios, intervenções e metas",
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    message = "%s %s %d - %.0fms"
    try:
        response = await call_next(request)
    except Exception:
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.error(message, request.method, request.url.path, 500, elapsed_ms)
        raise
    elapsed_ms = (time.perf_counter() - start) * 1000

    args = (request.method, request.url.path, response.status_code, elapsed_ms)
    if response.status_code >= 500:
        logger.error(message, *args)
    elif response.status_code >= 400:
        logger.warning(message, *args)
    else:
        logger.info(message, *args)
    return response


def error_response(request: Request, status_code: int, kind: ErrorKind, message, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        headers=headers,
        content={
            "success": False,
            "statusCode": status_code,
            "error": kind.value,
            "message": message,
            "path": request.url.path,
            "method": request.method,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }
    )


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    return error_response(request, exc.status_code, exc.kind, exc.message)


HTTP_ERROR_KINDS = {
    400: ErrorKind.VALIDATION,
    404: ErrorKind.NOT_FOUND,
    409: ErrorKind.CONFLICT,
}


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code >= 500:
        kind = ErrorKind.INTERNAL
    else:
        kind = HTTP_ERROR_KINDS.get(exc.status_code, ErrorKind.HTTP)
    return error_response(request, exc.status_code, kind, exc.detail, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    erros = []
    for error in exc.errors():
        # Primeiro item do loc é a origem (body, query, path)
        field = ".".join(str(part) for part in error["loc"][1:]) or str(error["loc"][0])
        erros.append({"field": field, "message": error["msg"]})
    return error_response(request, 400, ErrorKind.VALIDATION, erros)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Erro não tratado em %s %s", request.method, request.url.path)
    return error_response(request, 500, ErrorKind.INTERNAL, "Erro interno do servidor")


app.include_router(calendar.router, prefix=settings.api_prefix)
app.include_router(screening_instruments.router, prefix=settings.api_prefix)
app.include_router(screenings.router, prefix=settings.api_prefix)
app.include_router(screening_results.router, prefix=settings.api_prefix)
app.include_router(interventions.router, prefix=settings.api_prefix)
app.include_router(goals.router, prefix=settings.api_prefix)


@app.get("/")
def root():
    return {
        "message": "API do Innerview está funcionando!",
        "status": "online",
        "endpoints": {
            "docs": "/docs",
            "health": "/health",
            "calendar": f"{settings.api_prefix}/calendar",
            "screening_instruments": f"{settings.api_prefix}/screening-instruments",
            "screenings": f"{settings.api_prefix}/screenings",
            "screening_results": f"{settings.api_prefix}/screening-results",
            "interventions": f"{settings.api_prefix}/interventions",
            "goals": f"{settings.api_prefix}/goals"
        }
    }


@app.get("/health")
def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.api_host, port=settings.api_port)
