"""
Upload a file to OneDrive / SharePoint
"""
import asyncio
import os
from cloudpush import GraphDriveStore, UploadFacade


async def main():
    token = os.environ["CLOUDPUSH_TOKEN"]
    
    async with GraphDriveStore(token) as drive:
        uploader = UploadFacade()
        
        if not await uploader.probe(drive):
            print("Token rejected")
            return
        
        # Folders are created when missing, existing items are replaced
        def on_progress(progress):
            print(f"Progress: {progress.percentage:.1f}%")
        
        result = await uploader.upload_file(
            drive,
            "report.pdf",
            "Reports/2024",
            progress_callback=on_progress
        )
        result.raise_for_error()
        print(f"Uploaded: {result.item_id}")
    
    # SharePoint document library
    async with GraphDriveStore.for_drive(token, os.environ["CLOUDPUSH_DRIVE_ID"]) as library:
        result = await UploadFacade().upload_file(library, "report.pdf", "Shared/Reports")
        print(f"Uploaded: {result.item_id}")


if __name__ == "__main__":
    asyncio.run(main())
