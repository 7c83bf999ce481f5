import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fieldday.api.admin.router import router as admin_router
from fieldday.core.config import settings
from fieldday.core.errors import FieldDayError
from fieldday.core.http_hardening import install_http_hardening

logger = logging.getLogger("fieldday.errors")

app = FastAPI(title=settings.APP_NAME, version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
install_http_hardening(app)


@app.exception_handler(FieldDayError)
async def field_day_error_handler(request: Request, exc: FieldDayError):
    if exc.status_code >= 500:
        logger.error("%s %s error=%s detail=%s", request.method, request.url.path, exc.kind, exc)
    return JSONResponse(status_code=exc.status_code, content={"detail": str(exc), "error": exc.kind})


app.include_router(admin_router, prefix="/api/admin")


@app.get("/", include_in_schema=False)
def landing():
    return JSONResponse({"service": settings.APP_NAME, "status": "ok"})


@app.get("/health")
def health():
    return {"status": "ok"}
