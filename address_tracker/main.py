"""
Главное FastAPI приложение Address Tracker
"""

from fastapi import FastAPI

from address_tracker.api import addresses
from address_tracker.background import lifespan
from address_tracker.config import settings, setup_logging

setup_logging()

# Создаем FastAPI приложение
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="Хранилище классифицированных адресов",
    docs_url="/docs",
    redoc_url="/redoc",
    debug=settings.DEBUG,
    lifespan=lifespan,
)

# Подключение API роутеров
app.include_router(addresses.router, prefix=settings.API_V1_STR)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    scanner = getattr(app.state, "scanner", None)
    return {
        "status": "healthy",
        "service": settings.PROJECT_NAME,
        "scanner": scanner.state.value if scanner is not None else "stopped",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("address_tracker.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
