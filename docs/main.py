"""
Service Discovery / Documentation Service
Provides a single entry point to discover all Ethereal Nexus services.
"""

import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from common.constants import SERVICES
from libs.fastapi_service import (
    CORSMiddlewareConfig,
    FastAPIServiceFactory,
    ServiceAppConfig,
)

# Create service configuration
service_config = ServiceAppConfig(
    title="Ethereal Nexus Services Discovery",
    description="Service discovery and documentation endpoint for all Ethereal Nexus services.",
    service_name="service_discovery",
    cors_config=CORSMiddlewareConfig(),
    enable_metrics=False,  # This is just a discovery endpoint
)

# Create factory and build app
factory = FastAPIServiceFactory(service_config)
app = factory.create_app()


@app.get("/")
async def index():
    """Service discovery endpoint - lists all available services."""
    return {
        "services": {
            name: {"module": module, "docs": f"http://127.0.0.1:{port}/docs"}
            for name, (module, port) in SERVICES.items()
        },
        "description": "Ethereal Nexus services - open any docs link to view its API documentation",
    }
