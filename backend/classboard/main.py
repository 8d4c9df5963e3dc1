from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from classboard.config import settings
from classboard.database import init_db, close_db
from classboard.routers import users_router, diagrams_router
from classboard.utils.logging_config import setup_logging, fastapi_logger
from classboard.utils.rate_limit import close_rate_limiter
from classboard.error_handlers import register_exception_handlers
from classboard.middleware import RateLimitHeaderMiddleware, RequestTimingMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging()
    fastapi_logger.info(f"Starting {settings.APP_NAME}")
    await init_db()
    fastapi_logger.info("Database initialized")
    yield
    # Shutdown
    fastapi_logger.info("Shutting down application")
    await close_rate_limiter()
    fastapi_logger.info("Rate limiter connections closed")
    await close_db()


app = FastAPI(
    title=settings.APP_NAME,
    description="Collaborative class diagram backend",
    version="1.0.0",
    lifespan=lifespan
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestTimingMiddleware)

# Rate Limit Headers Middleware (must be added after CORS)
if settings.RATE_LIMIT_ENABLED:
    app.add_middleware(RateLimitHeaderMiddleware)

# Global Exception Handlers
register_exception_handlers(app)

# API Routers
app.include_router(users_router)
app.include_router(diagrams_router)


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("classboard.main:app", host="0.0.0.0", port=8000, reload=True)
