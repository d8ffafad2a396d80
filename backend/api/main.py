"""FastAPI Application

Main application entry point
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.api.middleware import setup_error_handlers
from backend.api.routes import health_router, roadmap_router
from backend.app.core.config import settings
from backend.app.core.errors import TransportError
from backend.app.core.logging import get_logger, setup_logging
from backend.app.roadmap.persistence import HttpRoadmapTransport
from backend.app.roadmap.session import RoadmapSession, set_roadmap_session

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler

    Startup: 세션 생성, 저장 서버에서 데이터 적재
    Shutdown: 남은 변경 저장, 연결 정리
    """
    # === Startup ===
    setup_logging()
    logger.info(
        "Starting application",
        app_name=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    transport = HttpRoadmapTransport()
    session = RoadmapSession(transport)
    set_roadmap_session(session)

    try:
        snapshot = await session.load_from_server()
        logger.info(
            "Roadmap loaded",
            version=snapshot.version,
            tasks=len(snapshot.tasks),
            resources=len(snapshot.resources),
        )
    except TransportError as e:
        logger.error("Failed to load roadmap", error=e.message)
        # 빈 그리드로 계속

    yield

    # === Shutdown ===
    logger.info("Shutting down application")

    try:
        if session.save_state.has_unsaved_changes:
            state = await session.force_save()
            if state.error:
                logger.error("Final save failed", error=state.error)
    finally:
        await session.close()
        await transport.close()
        set_roadmap_session(None)

    logger.info("Application shutdown complete")


def create_app() -> FastAPI:
    """Create FastAPI application"""

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Roadmap Planner - 주간 리소스 계획 그리드",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_error_handlers(app)

    # Include routers
    app.include_router(health_router)
    app.include_router(roadmap_router, prefix="/api")

    return app


# Application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "backend.api.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
