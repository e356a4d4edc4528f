"""
Upload to an in-memory store
"""
import asyncio
from cloudpush import MemoryStore, UploadOrchestrator, setup_logging


async def main():
    setup_logging()
    store = MemoryStore()
    uploader = UploadOrchestrator()
    
    # Small payloads go up in one request
    result = await uploader.upload(store, b"hello", 5, "Reports/2024", "hello.txt")
    print(f"Uploaded: {result.item_id} ({result.strategy.value})")
    
    # Anything above the threshold goes through a chunked session
    data = bytes(6 * 1024 * 1024)
    result = await uploader.upload(store, data, len(data), "Reports/2024", "big.bin")
    print(f"Uploaded: {result.item_id} ({result.strategy.value})")
    
    print(store.read_file("Reports/2024/hello.txt"))


if __name__ == "__main__":
    asyncio.run(main())
