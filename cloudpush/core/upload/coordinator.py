"""
Upload orchestrator.

Delivers one byte stream to one remote path using injected dependencies.
Follows Dependency Inversion Principle - depends on the RemoteStore
abstraction, never on a concrete backend.
"""
import asyncio
import time
from typing import BinaryIO, Optional, Union

from ..config import UploaderConfig
from ..exceptions import (
    AuthError,
    CloudPushError,
    SourceTooShort,
    StoreError,
    TransportError,
    UploadCancelled,
)
from ..hierarchy import PathResolver
from ..logging import get_logger
from ..path import RemotePath
from ..retry import ExponentialBackoffStrategy
from ..store.protocols import RemoteStore
from .models import UploadPlan, UploadProgress, UploadResult
from .protocols import ProgressCallback, SourceReader
from .services import ChunkedUploadSession, as_reader, read_exactly
from .strategies import UploadStrategySelector


logger = get_logger('cloudpush.upload.coordinator')


class UploadOrchestrator:
    """
    Coordinates a complete upload.

    Resolves the destination folder, plans the transfer and runs either a
    single whole-payload request or a chunked session. Holds no state
    between calls, so one orchestrator can serve many concurrent uploads.
    """

    def __init__(
        self,
        config: Optional[UploaderConfig] = None,
        path_resolver: Optional[PathResolver] = None,
        retry_strategy: Optional[ExponentialBackoffStrategy] = None
    ):
        """
        Initialize upload orchestrator.

        Args:
            config: Upload configuration (uses defaults if not provided)
            path_resolver: Folder resolver
            retry_strategy: Retry policy for transient failures
        """
        self._config = config or UploaderConfig.default()
        self._resolver = path_resolver or PathResolver()
        self._retry = retry_strategy or ExponentialBackoffStrategy(self._config.retry)

    @property
    def config(self) -> UploaderConfig:
        return self._config

    async def upload(
        self,
        store: RemoteStore,
        source: Union[SourceReader, BinaryIO, bytes],
        size: int,
        destination: Union[str, RemotePath],
        file_name: str,
        cancel_event: Optional[asyncio.Event] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> UploadResult:
        """
        Deliver ``size`` bytes from ``source`` to ``destination/file_name``.

        Args:
            store: Authenticated remote store
            source: Async reader, binary stream or bytes
            size: Payload size in bytes
            destination: Destination folder path, created when missing
            file_name: Name of the remote item (replaced if it exists)
            cancel_event: Checked before each chunk request
            progress_callback: Called after every accepted chunk

        Returns:
            UploadResult; failures carry the cloudpush error that ended
            the upload
        """
        plan = None
        started = time.time()
        try:
            remote = RemotePath.parse(destination)
            logger.info(f"Uploading {file_name} ({size} bytes) to {remote}")

            folder = await self._resolver.resolve(store, remote)
            selector = UploadStrategySelector(store.limits)
            plan = selector.build_plan(
                folder,
                file_name,
                size,
                self._config.chunk_threshold,
                self._config.max_chunk_size
            )
            logger.debug(f"Upload plan: {plan.strategy.value}, chunk size {plan.chunk_size}")

            reader = as_reader(source)
            if plan.is_chunked:
                session = ChunkedUploadSession(
                    store,
                    plan,
                    reader,
                    retry_strategy=self._retry,
                    timeout=self._config.timeout,
                    cancel_event=cancel_event,
                    progress_callback=progress_callback
                )
                item_id = await session.run()
            else:
                item_id = await self._upload_whole(
                    store, plan, reader, cancel_event, progress_callback
                )
        except CloudPushError as e:
            logger.error(f"Upload of {file_name} failed: {e}")
            return UploadResult.failed(e, file_name=file_name, size=size, plan=plan)

        logger.info(f"Uploaded {file_name} in {time.time() - started:.2f}s: {item_id}")
        return UploadResult.succeeded(item_id, plan)

    async def _upload_whole(
        self,
        store: RemoteStore,
        plan: UploadPlan,
        reader: SourceReader,
        cancel_event: Optional[asyncio.Event],
        progress_callback: Optional[ProgressCallback]
    ) -> str:
        """Send the payload in one request, retrying transient failures."""
        data = await read_exactly(reader, plan.total_size)
        if len(data) != plan.total_size:
            raise SourceTooShort(plan.total_size, len(data))

        timeout = self._config.timeout.request
        attempt = 0
        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise UploadCancelled(0)
            attempt += 1
            try:
                request = store.put_whole(plan.folder, plan.file_name, data, len(data))
                if timeout is not None:
                    item_id = await asyncio.wait_for(request, timeout)
                else:
                    item_id = await request
                break
            except (StoreError, asyncio.TimeoutError) as e:
                if not self._retry.should_retry(e, attempt, self._retry.max_attempts):
                    if isinstance(e, asyncio.TimeoutError):
                        raise TransportError(f"Whole upload timed out after {attempt} attempts") from e
                    raise
                logger.warning(
                    f"Whole upload of {plan.file_name} failed "
                    f"(attempt {attempt}/{self._retry.max_attempts}): {e!r}"
                )
                await self._retry.wait_async(attempt - 1)

        if progress_callback:
            progress_callback(UploadProgress(
                total_bytes=plan.total_size,
                uploaded_bytes=plan.total_size,
                total_chunks=1,
                uploaded_chunks=1
            ))
        return item_id

    async def probe(self, store: RemoteStore) -> bool:
        """
        Check that a store's credentials are usable.

        Returns:
            True when the store reports an identity, False when the
            credentials are rejected

        Raises:
            TransportError: Network-level failures are not downgraded
        """
        try:
            name = await store.probe_identity()
        except AuthError as e:
            logger.info(f"Credential probe rejected: {e}")
            return False
        logger.debug(f"Credential probe succeeded: {name!r}")
        return bool(name)
