# career_assessment/main.py
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import config
from .core.database import get_db_manager, close_db_manager
from .core.ai_services import get_ai_service, close_ai_service
from .core.session import SessionError
from .core.states import InvalidTransition, SessionBusy
from .core.utils import memory_manager, FlowNotFound
from .services.quiz_service import AuthenticationRequired, get_quiz_service
from .api.routes import router

# Setup logging
logging.basicConfig(
    level=getattr(logging, os.getenv('LOG_LEVEL', 'INFO')),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    logger.info("🚀 Career Assessment API starting...")

    try:
        validation = config.validate()
        if not validation["valid"]:
            raise Exception(f"Configuration invalid: {validation['issues']}")

        logger.info("✅ Configuration validated")

        logger.info("🔄 Initializing AI service...")
        ai_service = get_ai_service()
        ai_health = ai_service.health_check()

        if ai_health["status"] != "healthy":
            raise Exception(f"AI service validation failed: {ai_health}")

        logger.info("✅ AI service connected and validated")

    except Exception as e:
        logger.error(f"❌ Startup failed: {e}")
        raise Exception(f"Application startup failed: {e}")

    # Practice assessments run without the store; proctored tests need it
    try:
        logger.info("🔄 Initializing database...")
        db_health = get_db_manager().validate_connection()
        if db_health["overall"]:
            logger.info("✅ Database connected and validated")
        else:
            logger.warning(f"⚠️ Database degraded, proctored tests unavailable: {db_health}")
    except Exception as e:
        logger.warning(f"⚠️ Database unavailable, proctored tests disabled: {e}")

    memory_manager.start_cleanup()
    logger.info("✅ All systems operational")
    logger.info(f"📊 Configuration: {config.QUESTIONS_PER_TEST} questions, {config.QUESTION_TIME_LIMIT}s per question")

    yield

    # Cleanup on shutdown
    logger.info("👋 Shutting down...")
    try:
        await memory_manager.stop_cleanup()
        memory_manager.clear()
        close_db_manager()
        close_ai_service()
        logger.info("✅ Graceful shutdown completed")
    except Exception as e:
        logger.error(f"❌ Shutdown error: {e}")

# Create FastAPI application
app = FastAPI(
    title=config.API_TITLE,
    description=config.API_DESCRIPTION,
    version=config.API_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
cors_origins = os.getenv('CORS_ORIGINS', 'http://localhost:5173,http://localhost:3000').split(',')

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(router)

def _error(status_code: int, error: str, message: str, error_type: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "message": message, "type": error_type}
    )

# Exception handlers
@app.exception_handler(FlowNotFound)
async def flow_not_found_handler(request: Request, exc: FlowNotFound):
    logger.warning(f"Flow not found: {exc}")
    return _error(404, "Resource Not Found", str(exc), "not_found_error")

@app.exception_handler(AuthenticationRequired)
async def authentication_required_handler(request: Request, exc: AuthenticationRequired):
    return _error(401, "Authentication Required", str(exc), "authentication_required")

@app.exception_handler(SessionBusy)
async def session_busy_handler(request: Request, exc: SessionBusy):
    return _error(409, "Busy", str(exc), "busy_error")

@app.exception_handler(InvalidTransition)
async def invalid_transition_handler(request: Request, exc: InvalidTransition):
    logger.warning(f"Invalid transition: {exc}")
    return _error(409, "Invalid Action", str(exc), "invalid_transition")

@app.exception_handler(SessionError)
async def session_error_handler(request: Request, exc: SessionError):
    logger.warning(f"Session error: {exc}")
    return _error(400, "Session Error", str(exc), "session_error")

@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    """Handle validation errors"""
    logger.warning(f"Validation error: {exc}")
    return _error(400, "Validation Error", str(exc), "validation_error")

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return _error(500, "Internal Server Error", "An unexpected error occurred", "server_error")

# Health check endpoints
@app.get("/health")
async def health_check():
    """Comprehensive health check"""
    try:
        health_status = {
            "status": "healthy",
            "service": "career_assessment_api",
            "version": config.API_VERSION
        }

        quiz_health = get_quiz_service().health_check()
        health_status["quiz_service"] = quiz_health["status"]
        health_status["active_flows"] = quiz_health.get("active_flows", 0)

        try:
            ai_health = get_ai_service().health_check()
            health_status["ai_service"] = ai_health["status"]
        except Exception as e:
            health_status["ai_service"] = "error"
            logger.warning(f"AI service health check failed: {e}")

        try:
            db_health = get_db_manager().validate_connection()
            health_status["database"] = "healthy" if db_health["overall"] else "degraded"
        except Exception as e:
            health_status["database"] = "error"
            logger.warning(f"Database health check failed: {e}")

        return health_status

    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "service": "career_assessment_api",
                "error": str(e)
            }
        )

@app.get("/info")
async def api_info():
    """API information and capabilities"""
    return {
        "name": config.API_TITLE,
        "version": config.API_VERSION,
        "description": config.API_DESCRIPTION,
        "features": {
            "ai_question_generation": True,
            "per_question_timer": True,
            "proctored_tests": True,
            "career_recommendations": True,
            "roadmaps": True,
            "recommendation_images": bool(config.OPENAI_API_KEY)
        },
        "configuration": {
            "questions_per_test": config.QUESTIONS_PER_TEST,
            "aptitude_questions_per_test": config.APTITUDE_QUESTIONS_PER_TEST,
            "question_time_limit": config.QUESTION_TIME_LIMIT,
            "pass_percentage": config.PASS_PERCENTAGE,
            "dummy_mode": config.USE_DUMMY_DATA
        },
        "endpoints": {
            "start_practice": "POST /api/quiz/practice",
            "quiz_view": "GET /api/quiz/{flow_id}",
            "portal_login": "POST /api/proctored/login",
            "open_test": "POST /api/proctored/tests/{test_id}",
            "issue_test": "POST /api/teacher/tests",
            "health": "GET /health",
            "docs": "GET /docs"
        }
    }

if __name__ == "__main__":
    import uvicorn

    host = os.getenv('API_HOST', '0.0.0.0')
    port = int(os.getenv('API_PORT', '8080'))
    debug_mode = os.getenv('DEBUG_MODE', 'true').lower() == 'true'

    logger.info("🚀 Starting Career Assessment API")
    logger.info(f"🌐 Server: http://{host}:{port}")
    logger.info(f"📚 Docs: http://{host}:{port}/docs")

    uvicorn.run(
        "career_assessment.main:app",
        host=host,
        port=port,
        reload=debug_mode,
        log_level=os.getenv('LOG_LEVEL', 'info').lower(),
        access_log=debug_mode
    )
