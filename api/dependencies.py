from functools import lru_cache

from src.adapters.upstream import UpstreamClient
from src.core.config import Settings, load_settings
from src.core.gateway import ExtractionGateway


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


@lru_cache(maxsize=1)
def get_extraction_service() -> ExtractionGateway:
    settings = get_settings()
    upstream = UpstreamClient(settings.upstream_url, timeout=settings.timeout_seconds)
    return ExtractionGateway(upstream=upstream)
