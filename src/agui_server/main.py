"""FastAPI application for the AG-UI Agent Server"""
import logging
from contextlib import asynccontextmanager
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.health import router as health_router
from .api.agui import router as agui_router
from .api.threads import router as threads_router
from .models.errors import AgentProtocolError, get_error_type

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI lifespan context manager for startup/shutdown"""
    # Initialize LangGraph service
    from .services.langgraph_service import get_langgraph_service
    langgraph_service = get_langgraph_service()
    await langgraph_service.initialize()

    # Start idle thread eviction
    from .services.agent_runtime import get_thread_registry
    registry = get_thread_registry()
    await registry.start_cleanup_task()

    yield

    await registry.stop_cleanup_task()


# Create FastAPI application
app = FastAPI(
    title="AG-UI Agent Server",
    description="AG-UI streaming server for LangGraph agents with human-in-the-loop tool approval",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health_router, prefix="", tags=["Health"])
app.include_router(agui_router, prefix="", tags=["AG-UI"])
app.include_router(threads_router, prefix="", tags=["Threads"])


# Error handling
@app.exception_handler(HTTPException)
async def agent_protocol_exception_handler(request: Request, exc: HTTPException):
    """Convert HTTP exceptions to Agent Protocol error format"""
    return JSONResponse(
        status_code=exc.status_code,
        content=AgentProtocolError(
            error=get_error_type(exc.status_code),
            message=exc.detail,
            details=getattr(exc, 'details', None)
        ).model_dump()
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Invalid request bodies (e.g. a message without id or role)"""
    return JSONResponse(
        status_code=422,
        content=AgentProtocolError(
            error=get_error_type(422),
            message="Invalid request body",
            details={"errors": jsonable_errors(exc)}
        ).model_dump()
    )


def jsonable_errors(exc: RequestValidationError):
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions"""
    logger.exception(f"Unhandled error on {request.url.path}")
    return JSONResponse(
        status_code=500,
        content=AgentProtocolError(
            error="internal_error",
            message="An unexpected error occurred",
            details={"exception": str(exc)}
        ).model_dump()
    )


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "AG-UI Agent Server",
        "version": "0.1.0",
        "status": "running"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
