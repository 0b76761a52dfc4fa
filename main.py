from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from dotenv import load_dotenv
import os
import sys
import logging
from models.plugin_config import PluginConfig
from services.replica_selector import ReplicaSelector
from services.routing_service import ConnectionRoutingService
from services.tracing import init_tracing
from utils.config_utils import ConfigurationError, load_plugin_config
from routers import pre_ndc

load_dotenv()

logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def validate_environment() -> PluginConfig:
    """Load configuration from the environment, exiting if it is unusable."""
    try:
        config = load_plugin_config()
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: code={e.code}, error={e.message}")
        sys.exit(1)
    logger.info("Environment validation passed")
    return config


def create_app(config: PluginConfig) -> FastAPI:
    """
    Build the webhook application for a configuration.

    The routing service (and with it the round-robin state) is created here
    and owned by the application for its lifetime.
    """
    init_tracing(config)

    application = FastAPI(title="engine-plugin-dynamic-connection")
    application.state.routing_service = ConnectionRoutingService(
        config,
        selector=ReplicaSelector(),
    )

    application.include_router(pre_ndc.router)

    @application.get("/ping")
    def ping():
        logger.debug("Health check requested")
        return {"status": "ok"}

    @application.get("/health")
    def health():
        logger.debug("Health check requested")
        return {"status": "healthy"}

    @application.exception_handler(404)
    async def not_found(request: Request, exc: Exception):
        logger.warning(
            f"404 Not Found: method={request.method}, path={request.url.path}, "
            f"user_agent={request.headers.get('user-agent')}"
        )
        return JSONResponse(status_code=404, content={"error": "Not found"})

    return application


app = create_app(validate_environment())


if __name__ == "__main__":
    import uvicorn

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8787"))
    logger.info(f"Dynamic connection plugin server starting: host={host}, port={port}")
    uvicorn.run(app, host=host, port=port)
