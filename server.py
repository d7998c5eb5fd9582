import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from mcp.server.fastmcp import FastMCP

from managers.upload_config import UploadConfig
from tools.upload import register_upload_tools

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("MCP_Server")

upload_config = UploadConfig()


class AppContext:
    def __init__(self, config: UploadConfig):
        self.config = config


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[AppContext]:
    """Manage application lifecycle"""
    logger.info("Starting MCP server lifecycle...")
    try:
        if not upload_config.pinata_jwt:
            logger.warning("PINATA_JWT is not set; upload_collection will fail until it is configured")
        logger.info("Serving uploads from %s", upload_config.output_root)
        yield AppContext(config=upload_config)
    finally:
        logger.info("Shutting down MCP server")


mcp = FastMCP("Collection_Uploader", lifespan=app_lifespan)
register_upload_tools(mcp, upload_config)


if __name__ == "__main__":
    mcp.run(transport="streamable-http")
