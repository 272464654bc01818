import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hrms_server.api import auth, dashboard, employees
from hrms_server.core.config import settings
from hrms_server.core.database import close_db, get_db, init_db, ping
from hrms_server.core.email import email_service
from hrms_server.core.errors import register_exception_handlers

APP_VERSION = "1.0.0"

log_handlers = [logging.StreamHandler()]
if settings.LOG_FILE:
    log_handlers.append(logging.FileHandler(settings.LOG_FILE))

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=log_handlers
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting server...")
    await init_db()

    yield

    logger.info("Shutting down, closing connections...")
    try:
        email_service.close()
        await close_db()
    except Exception as e:
        logger.error(f"Error during shutdown: {str(e)}")


app = FastAPI(
    title="HRMS API",
    description="API for employee records, authentication and role dashboards",
    version=APP_VERSION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    return response


register_exception_handlers(app)

app.include_router(auth.router, prefix="/api/employees/auth")
app.include_router(auth.router, prefix="/api/auth", include_in_schema=False)
app.include_router(employees.router)
app.include_router(dashboard.router)


@app.get("/", tags=["health"])
async def health_check():
    return {
        "status": "ok",
        "message": "Server is running",
        "version": APP_VERSION
    }


@app.get("/api/health/db", tags=["health"])
async def database_health_check(db: AsyncSession = Depends(get_db)):
    try:
        await ping(db)
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database connection failed"
        )
    return {"success": True, "message": "Database connection successful"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run('hrms_server.main:app', host='0.0.0.0', port=8000, reload=True)
