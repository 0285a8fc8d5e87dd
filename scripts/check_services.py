"""Check the configured feature layer, geocoder and LLM provider.

Usage:
    python scripts/check_services.py ["306 Cedar Lane"]
"""

import asyncio
import logging
import sys

import httpx
from dotenv import load_dotenv

from property_search.config import get_settings
from property_search.exceptions import ServiceError
from property_search.llm import create_llm_provider
from property_search.query.orchestrator import QueryOrchestrator

load_dotenv()
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def check_services(sample_query: str):
    """Probe each configured service and run one sample search."""
    print("🔍 Checking Property Search Services")
    print("=" * 50)

    settings = get_settings()
    print(f"📋 Feature layer: {settings.feature_service_url}")
    print(f"📋 Address index: {settings.address_index_url or '(none)'}")
    print(f"📋 Geocoder: {settings.geocoder_url}")
    print(f"📋 LLM Provider: {settings.llm_provider.value}")
    print()

    provider = None
    if settings.system_prompt.strip():
        try:
            settings.validate_provider_config()
            provider = create_llm_provider()
        except ValueError as e:
            print(f"❌ LLM configuration invalid: {e}")
        else:
            healthy = await provider.health_check()
            print(f"{'✅' if healthy else '❌'} LLM provider {provider.name} ({provider.model})")
    else:
        print("⚠️  No system prompt configured, AI translation disabled")
    print()

    async with httpx.AsyncClient() as client:
        orchestrator = QueryOrchestrator.from_settings(settings, provider=provider, client=client)

        try:
            fields = await orchestrator.feature_service.describe_fields()
            print(f"✅ Layer metadata loaded: {len(fields)} fields")
            for field in fields[:10]:
                print(f"   - {field.name} ({field.type})")
        except ServiceError as e:
            print(f"❌ Layer metadata failed: {e}")
        print()

        identifier_field, address_field = settings.resolve_field_names()
        print(f"📋 Identifier field: {identifier_field}")
        print(f"📋 Address field: {address_field}")
        print()

        print(f"🔎 Searching: {sample_query}")
        outcome = await orchestrator.submit(sample_query)
        print(f"   {outcome.kind}: {outcome.message}")
        print(f"   Records: {len(outcome.records)}")
        if outcome.location:
            print(f"   Location: {outcome.location.latitude}, {outcome.location.longitude}")


if __name__ == "__main__":
    query = sys.argv[1] if len(sys.argv) > 1 else "306 Cedar Lane"
    asyncio.run(check_services(query))
