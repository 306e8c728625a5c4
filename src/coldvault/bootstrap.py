"""Application wiring.

ONLY composition - builds providers, selector, record store and the
command/query objects from ``ColdVaultSettings``.

Following maximum separation architecture - one file = one purpose.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Dict, Optional

from .application.commands import (
    CompleteUploadCommand,
    InitiateRetrievalCommand,
    InitiateUploadCommand,
    UploadFileChunkCommand,
    UploadFileCommand,
)
from .application.queries import (
    CheckRetrievalStatusQuery,
    GetFileContentQuery,
    GetUploadProgressQuery,
)
from .application.services import (
    ContentHasher,
    StorageManagerConfig,
    StorageProviderSelector,
    ThumbnailPublisher,
)
from .config import ColdVaultSettings, get_settings, setup_logging
from .core.protocols import ChunkStore, EventNotifier, StorageProviderProtocol, UnitOfWork
from .infrastructure.notifications import LoggingEventNotifier
from .infrastructure.persistence import (
    AsyncPGRecordStore,
    InMemoryChunkStore,
    InMemoryRecordStore,
)
from .infrastructure.storage import StorageProviderFactory
from .infrastructure.thumbnails import PillowThumbnailGenerator

logger = logging.getLogger(__name__)


@dataclass
class ColdVault:
    """Wired application: every command and query sharing one record store."""
    settings: ColdVaultSettings
    providers: Dict[str, StorageProviderProtocol]
    selector: StorageProviderSelector
    record_store: Any
    chunk_store: ChunkStore
    upload_file: UploadFileCommand
    initiate_upload: InitiateUploadCommand
    upload_chunk: UploadFileChunkCommand
    complete_upload: CompleteUploadCommand
    initiate_retrieval: InitiateRetrievalCommand
    get_upload_progress: GetUploadProgressQuery
    check_retrieval_status: CheckRetrievalStatusQuery
    get_file_content: GetFileContentQuery

    async def close(self) -> None:
        close = getattr(self.record_store, "close", None)
        if close is not None:
            await close()


def build_application(
    settings: ColdVaultSettings,
    uow_factory: Callable[[], UnitOfWork],
    providers: Optional[Dict[str, StorageProviderProtocol]] = None,
    chunk_store: Optional[ChunkStore] = None,
    notifier: Optional[EventNotifier] = None
) -> ColdVault:
    """Wire commands and queries around an existing record store."""
    if providers is None:
        providers = StorageProviderFactory(settings).create_providers()
    selector = StorageProviderSelector(providers, StorageManagerConfig.from_settings(settings))
    chunk_store = chunk_store or InMemoryChunkStore(ttl=timedelta(hours=settings.session_ttl_hours))
    notifier = notifier or LoggingEventNotifier()
    hasher = ContentHasher()
    thumbnails = ThumbnailPublisher(
        selector,
        PillowThumbnailGenerator(),
        width=settings.thumbnail_width,
        height=settings.thumbnail_height,
        quality=settings.thumbnail_quality,
    )

    app = ColdVault(
        settings=settings,
        providers=providers,
        selector=selector,
        record_store=uow_factory,
        chunk_store=chunk_store,
        upload_file=UploadFileCommand(
            uow_factory, selector, hasher, thumbnails, notifier,
            max_upload_size=settings.max_single_upload_size,
        ),
        initiate_upload=InitiateUploadCommand(
            uow_factory,
            default_chunk_size=settings.default_chunk_size,
            session_ttl=timedelta(hours=settings.session_ttl_hours),
            notifier=notifier,
        ),
        upload_chunk=UploadFileChunkCommand(
            uow_factory, chunk_store, max_conflict_retries=settings.chunk_conflict_retries
        ),
        complete_upload=CompleteUploadCommand(
            uow_factory, selector, hasher, chunk_store, thumbnails, notifier
        ),
        initiate_retrieval=InitiateRetrievalCommand(uow_factory, selector),
        get_upload_progress=GetUploadProgressQuery(uow_factory),
        check_retrieval_status=CheckRetrievalStatusQuery(selector),
        get_file_content=GetFileContentQuery(uow_factory, selector),
    )
    logger.info(
        f"ColdVault ready with providers: {', '.join(selector.provider_names) or 'none'}"
    )
    return app


async def create_application(settings: Optional[ColdVaultSettings] = None) -> ColdVault:
    """Build the application from settings.

    Uses PostgreSQL when ``database_url`` is configured and an in-memory
    record store otherwise.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    if settings.database_url is not None:
        record_store = await AsyncPGRecordStore.connect(
            settings.database_url.get_secret_value(),
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            command_timeout=settings.db_command_timeout,
        )
        await record_store.create_schema()
        logger.warning(
            "Chunk payloads are held in process memory; sessions that outlive this process "
            "must be completed with a caller-supplied stream"
        )
    else:
        logger.warning("No database_url configured, using in-memory record store")
        record_store = InMemoryRecordStore()

    return build_application(settings, record_store)
