"""Main entry point for the property search service."""

import asyncio
import logging
import sys

import httpx
from dotenv import load_dotenv

from property_search.arcgis.client import FeatureQueryService
from property_search.config import get_settings
from property_search.llm import create_llm_provider
from property_search.query.orchestrator import FieldCatalogue, QueryOrchestrator
from property_search.web_server import SearchSessions, WebServer

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


async def main() -> None:
    """Main application entry point."""
    settings = get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info(f"Starting property search in {settings.environment.value} mode")
    logger.info(f"Using LLM provider: {settings.llm_provider.value}")

    provider = None
    if settings.system_prompt.strip():
        # Validate configuration
        try:
            settings.validate_provider_config()
        except ValueError as e:
            logger.error(f"Configuration error: {e}")
            sys.exit(1)
        provider = create_llm_provider()
    else:
        logger.warning("No system prompt configured - questions will use basic text matching")

    client = httpx.AsyncClient()
    # Sessions share the layer's field catalogue
    catalogue = FieldCatalogue(FeatureQueryService(settings.feature_service_url, client=client))
    sessions = SearchSessions(
        lambda: QueryOrchestrator.from_settings(
            settings, provider=provider, client=client, catalogue=catalogue
        ),
        max_sessions=settings.max_sessions,
    )

    web_server = WebServer(sessions, host=settings.web_host, port=settings.web_port)
    runner = await web_server.start()

    try:
        await asyncio.Event().wait()
    finally:
        logger.info("Shutting down...")
        await web_server.stop(runner)
        await client.aclose()


def run() -> None:
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
