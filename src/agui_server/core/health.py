"""Health check endpoints"""
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from ..services.langgraph_service import get_langgraph_service
from ..services.agent_runtime import get_thread_registry

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model"""
    status: str
    graphs: str
    threads: int


class InfoResponse(BaseModel):
    """Info endpoint response model"""
    name: str
    version: str
    description: str
    status: str


@router.get("/info", response_model=InfoResponse)
async def info():
    """Simple service information endpoint"""
    return InfoResponse(
        name="AG-UI Agent Server",
        version="0.1.0",
        description="AG-UI streaming server for LangGraph agents with tool approval",
        status="running"
    )


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint"""
    graphs = get_langgraph_service().list_graphs()
    if not graphs:
        raise HTTPException(status_code=503, detail="Service unhealthy - no graphs loaded")

    return HealthResponse(
        status="healthy",
        graphs=", ".join(graphs),
        threads=len(get_thread_registry()),
    )


@router.get("/ready")
async def readiness_check():
    """Kubernetes readiness probe endpoint"""
    if get_langgraph_service().get_config() is None:
        raise HTTPException(status_code=503, detail="Service not ready - graph registry not loaded")
    return {"status": "ready"}


@router.get("/live")
async def liveness_check():
    """Kubernetes liveness probe endpoint"""
    return {"status": "alive"}
