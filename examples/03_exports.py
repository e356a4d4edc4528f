"""
Deliver report exports with cancellation
"""
import asyncio
import tempfile
from pathlib import Path
from cloudpush import ExportFormat, MemoryStore, UploadFacade


async def main():
    store = MemoryStore()
    uploader = UploadFacade()
    
    with tempfile.TemporaryDirectory() as tmp:
        export = Path(tmp) / "export.tmp"
        export.write_bytes(b"PK\x03\x04")
        
        # Named after the export format: Sales.xlsx
        result = await uploader.upload_export(
            store, export, "Exports", "Sales", ExportFormat.XLSX
        )
    print(f"Uploaded: {result.file_name}")
    
    # Stop a long upload after the first chunk
    cancel = asyncio.Event()
    data = bytes(20 * 1024 * 1024)
    result = await uploader.upload_bytes(
        store,
        data,
        "Exports",
        "archive.zip",
        cancel_event=cancel,
        progress_callback=lambda progress: cancel.set()
    )
    print(f"Cancelled: {result.error}")


if __name__ == "__main__":
    asyncio.run(main())
