"""
Upload a file to a WebDAV server
"""
import asyncio
import os
from cloudpush import UploadFacade, WebDAVStore


async def main():
    async with WebDAVStore(
        os.environ["CLOUDPUSH_DAV_URL"],
        os.environ.get("CLOUDPUSH_DAV_USER"),
        os.environ.get("CLOUDPUSH_DAV_PASSWORD")
    ) as dav:
        uploader = UploadFacade()

        if not await uploader.probe(dav):
            print("Credentials rejected")
            return

        # WebDAV has no upload sessions, so the file goes up in one PUT
        result = await uploader.upload_file(dav, "report.pdf", "Reports/2024")
        result.raise_for_error()
        print(f"Uploaded: {result.item_id}")


if __name__ == "__main__":
    asyncio.run(main())
