"""
Progress Examples

Download progress per chunk and upload progress for POST/PUT/PATCH bodies.
"""

import asyncio

from quickrequest import ProgressEvent, QuickRequestClient


def show(label):
    def callback(event: ProgressEvent) -> None:
        if event.estimated_total:
            print(f"  {label}: {event.percent:3d}% ({event.loaded_bytes}/{event.total_bytes} bytes)")
        else:
            print(f"  {label}: {event.loaded_bytes} bytes (size unknown)")
    return callback


async def download():
    print("\n=== Download Progress ===")

    async with QuickRequestClient("https://httpbin.org") as client:
        data = await client.get("/bytes/50000", on_download_progress=show("download"))
        print(f"Received {len(data)} characters")


async def upload():
    print("\n=== Upload Progress ===")

    async with QuickRequestClient("https://httpbin.org") as client:
        payload = {"blob": "x" * 200_000}
        result = await client.post("/post", payload, on_upload_progress=show("upload"))
        print(f"Server saw {len(result['data'])} bytes")


async def main():
    await download()
    await upload()


if __name__ == "__main__":
    asyncio.run(main())
