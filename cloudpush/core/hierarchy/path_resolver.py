"""Resolution of destination folder paths, creating missing folders."""
import asyncio
from typing import List, Optional, Union

from ..exceptions import FolderAlreadyExistsError, PathResolutionFailed, StoreError
from ..logging import get_logger
from ..path import RemotePath
from ..store.protocols import ChildEntry, CreateStatus, RemoteStore


logger = get_logger('cloudpush.hierarchy')


class PathResolver:
    """
    Resolves a remote path to a folder handle.
    
    Walks the path one segment at a time from the store root, descending
    into the matching folder or creating it when missing. A creation that
    loses a race with another creator counts as success: the resolver lists
    again and descends into the folder the other party created.
    
    Handles are never cached between calls because the remote tree may
    change concurrently.
    """
    
    async def resolve(self, store: RemoteStore, path: Union[str, RemotePath]) -> str:
        """
        Resolve ``path`` to a folder handle.
        
        Args:
            store: Remote store to walk
            path: Destination folder path
            
        Returns:
            Handle of the last folder in the path (the root for an empty path)
            
        Raises:
            PathResolutionFailed: If listing or creation fails for a segment
        """
        remote = RemotePath.parse(path)
        current = store.root_handle
        
        for index, segment in enumerate(remote):
            match = await self._find_folder(store, current, segment, index)
            if match is None:
                match = await self._create_folder(store, current, segment, index)
                logger.debug(f"Created folder '{segment}' ({index + 1}/{len(remote)})")
            current = match
        
        logger.debug(f"Resolved {remote} -> {current}")
        return current
    
    async def _find_folder(
        self,
        store: RemoteStore,
        parent: str,
        segment: str,
        index: int
    ) -> Optional[str]:
        try:
            children = await store.list_children(parent)
        except (StoreError, asyncio.TimeoutError) as e:
            raise PathResolutionFailed(index, e, segment) from e
        return self._pick(children, segment)
    
    async def _create_folder(
        self,
        store: RemoteStore,
        parent: str,
        segment: str,
        index: int
    ) -> str:
        try:
            creation = await store.create_folder(parent, segment)
        except FolderAlreadyExistsError:
            creation = None
        except (StoreError, asyncio.TimeoutError) as e:
            raise PathResolutionFailed(index, e, segment) from e
        
        if creation is not None and creation.status is CreateStatus.CREATED:
            return creation.handle
        
        logger.info(f"Folder '{segment}' was created concurrently, listing again")
        match = await self._find_folder(store, parent, segment, index)
        if match is None:
            raise PathResolutionFailed(
                index,
                StoreError(f"Folder '{segment}' reported as existing but not listed"),
                segment
            )
        return match
    
    @staticmethod
    def _pick(children: List[ChildEntry], segment: str) -> Optional[str]:
        matches = [c for c in children if c.is_folder and c.name == segment]
        if not matches:
            return None
        if len(matches) > 1:
            logger.warning(
                f"{len(matches)} folders named '{segment}' found, using {matches[0].handle}"
            )
        return matches[0].handle
