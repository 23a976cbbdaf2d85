from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from src.domain.services.processing_service import ProcessingService
from src.infrastructure.config import ExtensionConfig, get_config
from src.infrastructure.storage.http_fetcher import HttpImageFetcher
from src.infrastructure.storage.supabase_client import get_supabase_client
from src.infrastructure.storage.supabase_storage import SupabaseStorage


def get_storage() -> SupabaseStorage:
    client = get_supabase_client()
    return SupabaseStorage(client)


def get_fetcher(config: Annotated[ExtensionConfig, Depends(get_config)]) -> HttpImageFetcher:
    return HttpImageFetcher(timeout=config.input_fetch_timeout, max_bytes=config.max_input_bytes)


def get_processing_service(
    config: Annotated[ExtensionConfig, Depends(get_config)],
    storage: Annotated[SupabaseStorage, Depends(get_storage)],
    fetcher: Annotated[HttpImageFetcher, Depends(get_fetcher)],
) -> ProcessingService:
    return ProcessingService(
        fetch_url=fetcher.fetch,
        read_storage=storage.download_bytes,
        default_output_format=config.default_output_format,
        default_input_source=config.default_input_source,
    )
