#!/usr/bin/env python3
"""
Server startup script.

This script:
1. Sets up the environment
2. Configures logging
3. Starts the FastAPI server with the AG-UI endpoint
"""

import os
import sys
import logging
import uvicorn


def setup_environment():
    """Report which model backends are configured"""
    if not os.getenv("LANGGRAPH_CONFIG"):
        os.environ["LANGGRAPH_CONFIG"] = "langgraph.json"

    print(f"🧭 Graph config: {os.getenv('LANGGRAPH_CONFIG')}")
    print(f"🤖 Primary model: {os.getenv('AGUI_PRIMARY_MODEL') or '(none, using fallbacks)'}")
    print(f"🦙 Ollama: {os.getenv('OLLAMA_BASE_URL', 'http://localhost:11434')}")


def configure_logging(level: str = "DEBUG"):
    """Configure root and app loggers to emit to stdout with formatting."""
    log_level = getattr(logging, level.upper(), logging.DEBUG)
    formatter = logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")

    root = logging.getLogger()
    root.setLevel(log_level)

    # Avoid duplicate handlers on reload
    if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
        sh = logging.StreamHandler(sys.stdout)
        sh.setFormatter(formatter)
        root.addHandler(sh)

    logging.getLogger("agui_server").setLevel(log_level)
    logging.getLogger("uvicorn.error").setLevel(log_level)
    logging.getLogger("uvicorn.access").setLevel(log_level)
    # Keep HTTP client chatter out of run traces
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)


def main():
    """Start the server"""
    setup_environment()
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    print("🚀 Starting AG-UI Agent Server...")
    print("📍 Server will be available at: http://localhost:8000")
    print("📊 API docs will be available at: http://localhost:8000/docs")
    print("💬 AG-UI endpoint: POST http://localhost:8000/agui/run")

    uvicorn.run(
        "agui_server.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("RELOAD", "false").lower() == "true",
        log_level=os.getenv("UVICORN_LOG_LEVEL", "info"),
    )

if __name__ == "__main__":
    main()
