"""
Chunked upload session.

Drives one resumable upload from session start to the final, metadata
bearing request. Chunks are sent strictly in order: the store keeps a single
cursor and rejects anything that does not start at it.
"""
import asyncio
import time
from typing import Awaitable, List, Optional, Tuple, TypeVar

from ...config import RetryConfig, TimeoutConfig
from ...exceptions import (
    AuthError,
    ChunkUploadFailed,
    ConflictError,
    PartialAcceptanceError,
    SessionAborted,
    SourceTooShort,
    StoreError,
    TransportError,
    UploadCancelled,
)
from ...logging import get_logger
from ...retry import ExponentialBackoffStrategy
from ...store.protocols import ChunkAck, ItemMetadata, RemoteStore
from ..models import ChunkDescriptor, SessionPhase, SessionState, UploadPlan, UploadProgress
from ..protocols import ProgressCallback, SourceReader
from ..strategies import AlignedChunkingStrategy
from .file_service import read_exactly


logger = get_logger('cloudpush.upload.session')

T = TypeVar('T')


class ChunkedUploadSession:
    """
    State machine for one chunked upload.

    IDLE -> STARTED -> UPLOADING -> FINISHED, or ABORTED from any
    non-terminal phase. A session object runs once; a new attempt needs a
    new session and starts again from offset 0.

    Example:
        >>> session = ChunkedUploadSession(store, plan, reader)
        >>> item_id = await session.run()
    """

    def __init__(
        self,
        store: RemoteStore,
        plan: UploadPlan,
        source: SourceReader,
        retry_strategy: Optional[ExponentialBackoffStrategy] = None,
        timeout: Optional[TimeoutConfig] = None,
        cancel_event: Optional[asyncio.Event] = None,
        progress_callback: Optional[ProgressCallback] = None
    ):
        """
        Initialize chunked upload session.

        Args:
            store: Remote store receiving the chunks
            plan: CHUNKED upload plan
            source: Reader positioned at the start of the payload
            retry_strategy: Retry policy for transient failures
            timeout: Per-request timeout configuration
            cancel_event: Checked before every chunk request
            progress_callback: Called after every accepted chunk
        """
        if not plan.is_chunked:
            raise ValueError("ChunkedUploadSession needs a CHUNKED plan")
        if plan.total_size == 0:
            raise ValueError("Empty payloads cannot be sent through a session")
        self._store = store
        self._plan = plan
        self._source = source
        self._retry = retry_strategy or ExponentialBackoffStrategy(RetryConfig())
        self._timeout = (timeout or TimeoutConfig()).request
        self._cancel_event = cancel_event
        self._progress_callback = progress_callback
        self._chunking = AlignedChunkingStrategy(plan.chunk_size, store.limits.chunk_alignment)

        self._phase = SessionPhase.IDLE
        self._state: Optional[SessionState] = None
        self._transitions: List[SessionPhase] = [SessionPhase.IDLE]
        self._sent_ranges: List[Tuple[int, int]] = []
        self._progress = UploadProgress(
            total_bytes=plan.total_size,
            total_chunks=self._chunking.count(plan.total_size)
        )

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def state(self) -> Optional[SessionState]:
        """Session state, None until the store issued a token."""
        return self._state

    @property
    def transitions(self) -> List[SessionPhase]:
        """Every phase entered, in order."""
        return list(self._transitions)

    @property
    def sent_ranges(self) -> List[Tuple[int, int]]:
        """Acknowledged requests as (start, end) byte ranges."""
        return list(self._sent_ranges)

    async def run(self) -> str:
        """
        Execute the session.

        Returns:
            Identifier of the created or replaced remote item

        Raises:
            ChunkUploadFailed: A chunk exhausted its retry budget
            UploadCancelled: The cancel event was set
            SessionAborted: Non-retriable store error or protocol violation
            AuthError: Credentials rejected mid-session
        """
        if self._phase is not SessionPhase.IDLE:
            raise RuntimeError(f"Session already {self._phase.value}")

        size_mb = self._plan.total_size / (1024 * 1024)
        logger.info(
            f"Starting chunked upload: {self._plan.file_name} ({size_mb:.2f} MB, "
            f"{self._progress.total_chunks} chunks of {self._plan.chunk_size} bytes)"
        )
        started = time.time()
        try:
            await self._start()
            item_id = None
            for chunk in self._chunking.descriptors(self._plan.total_size):
                data = await self._read(chunk)
                if chunk.is_final:
                    item_id = await self._finish(chunk, data)
                else:
                    await self._append(chunk, data)
                    self._enter(SessionPhase.UPLOADING)
                self._report(chunk)
        except BaseException as e:
            self._enter(SessionPhase.ABORTED)
            offset = self._state.next_expected_offset if self._state else 0
            logger.error(f"Upload session aborted at offset {offset}: {e!r}")
            raise

        self._enter(SessionPhase.FINISHED)
        logger.info(f"Chunked upload finished in {time.time() - started:.2f}s: {item_id}")
        return item_id

    async def _start(self) -> None:
        self._check_cancelled(0)
        try:
            token = await self._call(self._store.start_session(
                self._plan.folder,
                self._plan.file_name,
                self._plan.total_size
            ))
        except AuthError:
            raise
        except (StoreError, asyncio.TimeoutError) as e:
            raise SessionAborted(e, 0) from e
        self._state = SessionState(token=token, total_size=self._plan.total_size)
        self._enter(SessionPhase.STARTED)
        logger.debug(f"Session started: {token[:40]}")

    async def _read(self, chunk: ChunkDescriptor) -> bytes:
        data = await read_exactly(self._source, chunk.length)
        if len(data) != chunk.length:
            raise SourceTooShort(self._plan.total_size, chunk.offset + len(data))
        return data

    async def _append(self, chunk: ChunkDescriptor, data: bytes) -> None:
        """Send one non-final chunk until the store has all of it."""
        attempts = 0
        retrying = False
        while True:
            offset = self._state.next_expected_offset
            if offset == chunk.end:
                return
            pending = data[offset - chunk.offset:]
            self._check_cancelled(offset)
            attempts += 1
            try:
                ack: ChunkAck = await self._call(self._store.append_chunk(
                    self._state.token, offset, len(pending), pending
                ))
            except ConflictError as e:
                if not retrying:
                    raise SessionAborted(e, offset) from e
                await self._recover_cursor(chunk, e, allow_complete=True)
                attempts, retrying = 0, False
                continue
            except (StoreError, asyncio.TimeoutError) as e:
                await self._handle_failure(e, chunk, attempts)
                retrying = True
                continue

            if await self._accept(chunk, offset, ack.accepted_up_to, attempts):
                attempts, retrying = 0, False

    async def _finish(self, chunk: ChunkDescriptor, data: bytes) -> str:
        """Send the final chunk together with the item metadata."""
        metadata = ItemMetadata(name=self._plan.file_name, conflict_behavior="replace")
        attempts = 0
        retrying = False
        while True:
            offset = self._state.next_expected_offset
            pending = data[offset - chunk.offset:]
            self._check_cancelled(offset)
            attempts += 1
            try:
                item_id = await self._call(self._store.finish_session(
                    self._state.token, offset, len(pending), pending, metadata
                ))
            except PartialAcceptanceError as e:
                if e.accepted_up_to == chunk.end:
                    raise SessionAborted(
                        f"store holds all {chunk.end} bytes but returned no item", offset
                    ) from e
                if await self._accept(chunk, offset, e.accepted_up_to, attempts):
                    attempts, retrying = 0, False
                continue
            except ConflictError as e:
                if not retrying:
                    raise SessionAborted(e, offset) from e
                await self._recover_cursor(chunk, e, allow_complete=False)
                attempts, retrying = 0, False
                continue
            except (StoreError, asyncio.TimeoutError) as e:
                await self._handle_failure(e, chunk, attempts)
                retrying = True
                continue

            self._sent_ranges.append((offset, chunk.end))
            self._state.resync(chunk.end)
            return item_id

    async def _accept(
        self,
        chunk: ChunkDescriptor,
        offset: int,
        accepted: int,
        attempts: int
    ) -> bool:
        """
        Move the cursor to the store's acknowledgement.

        Returns:
            True when the store made progress, False when it accepted
            nothing (counted as a failed attempt)
        """
        if accepted < offset or accepted > chunk.end:
            raise SessionAborted(
                f"store acknowledged offset {accepted} outside [{offset}, {chunk.end}]",
                offset
            )
        if accepted == offset:
            await self._handle_failure(
                TransportError(f"no bytes accepted at offset {offset}"), chunk, attempts
            )
            return False

        self._sent_ranges.append((offset, accepted))
        self._state.resync(accepted)
        if accepted == chunk.end:
            logger.debug(f"Chunk {chunk.index} accepted ({chunk.offset}-{chunk.end})")
        else:
            logger.warning(
                f"Chunk {chunk.index} partially accepted up to {accepted}, "
                f"resending {chunk.end - accepted} bytes"
            )
        return True

    async def _recover_cursor(
        self,
        chunk: ChunkDescriptor,
        conflict: ConflictError,
        allow_complete: bool
    ) -> None:
        """
        Resynchronize after a retried request was rejected as out of range.

        A request that failed in flight may still have reached the store, in
        which case its cursor is ahead of ours. Asks the store where it is
        and moves there; any other answer aborts the session.
        """
        offset = self._state.next_expected_offset
        try:
            ack: ChunkAck = await self._call(self._store.session_status(self._state.token))
        except AuthError:
            raise
        except (StoreError, asyncio.TimeoutError) as e:
            raise SessionAborted(conflict, offset) from e

        accepted = ack.accepted_up_to
        limit = chunk.end if allow_complete else chunk.end - 1
        if accepted <= offset or accepted > limit:
            raise SessionAborted(conflict, offset) from conflict

        logger.warning(
            f"Store already holds bytes up to {accepted}, resuming chunk {chunk.index} there"
        )
        self._sent_ranges.append((offset, accepted))
        self._state.resync(accepted)

    async def _handle_failure(
        self,
        error: BaseException,
        chunk: ChunkDescriptor,
        attempts: int
    ) -> None:
        """Sleep before the next attempt, or raise when the chunk is done for."""
        offset = self._state.next_expected_offset
        if isinstance(error, AuthError):
            raise error
        if not self._retry.is_transient(error):
            raise SessionAborted(error, offset) from error
        if not self._retry.should_retry(error, attempts, self._retry.max_attempts):
            raise ChunkUploadFailed(chunk.offset, attempts, error) from error
        logger.warning(
            f"Chunk {chunk.index} at offset {offset} failed "
            f"(attempt {attempts}/{self._retry.max_attempts}): {error!r}"
        )
        await self._retry.wait_async(attempts - 1)

    async def _call(self, request: Awaitable[T]) -> T:
        if self._timeout is None:
            return await request
        return await asyncio.wait_for(request, self._timeout)

    def _check_cancelled(self, offset: int) -> None:
        if self._cancel_event is not None and self._cancel_event.is_set():
            raise UploadCancelled(offset)

    def _enter(self, phase: SessionPhase) -> None:
        self._phase = phase
        self._transitions.append(phase)

    def _report(self, chunk: ChunkDescriptor) -> None:
        self._progress.uploaded_chunks = chunk.index + 1
        self._progress.uploaded_bytes = self._state.next_expected_offset
        if self._progress_callback:
            self._progress_callback(self._progress)
