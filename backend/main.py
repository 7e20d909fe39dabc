"""
Main entry point for the RGPD compliance API.

This module creates the application through the API factory, loads the server
parameters from the configuration singleton and starts Uvicorn, with
auto-reload in debug mode.
"""

import uvicorn
from backend.app.api.main import create_app
from backend.app.utils.logging.logger import log_info
from backend.app.configs.config_singleton import get_config

# Create the FastAPI application instance using the factory function.
app = create_app()

port = get_config("api_port", 8000)
host = get_config("api_host", "0.0.0.0")
debug = get_config("debug", False)

if __name__ == "__main__":
    log_info(f"[OK] Starting server on {host}:{port} (debug={debug})")
    uvicorn.run(
        "backend.main:app",
        host=host,
        port=port,
        reload=debug,
        log_level="info",
        workers=1,
        limit_concurrency=100,
        timeout_keep_alive=75,
    )
