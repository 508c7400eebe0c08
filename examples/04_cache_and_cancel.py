"""
Cache and Cancellation Examples

GET responses cached by full URL for cache_ttl_ms. CancellationToken aborts a call.
"""

import asyncio
import logging
import time

from quickrequest import AbortError, CancellationToken, QuickRequestClient


async def cached_get():
    print("\n=== GET Cache ===")

    async with QuickRequestClient("https://jsonplaceholder.typicode.com", cache_ttl_ms=30_000) as client:
        for attempt in (1, 2):
            start = time.monotonic()
            await client.get("/posts/1")
            print(f"Request {attempt}: {(time.monotonic() - start) * 1000:.1f} ms")

        # Мимо кэша
        await client.get("/posts/1", use_cache=False)
        print(f"Cached URLs: {list(client.cache)}")


async def cancel_request():
    print("\n=== Cancellation ===")

    token = CancellationToken()
    async with QuickRequestClient("https://httpbin.org") as client:
        asyncio.get_running_loop().call_later(0.3, token.cancel)
        try:
            await client.get("/delay/5", signal=token)
        except AbortError as e:
            print(f"Aborted: is_abort={e.is_abort}, is_timeout={e.is_timeout}")


async def main():
    # Debug события кэша: cache hit / cache saved / cache expired
    logging.basicConfig(level=logging.DEBUG, format="%(name)s %(message)s")
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    await cached_get()
    await cancel_request()


if __name__ == "__main__":
    asyncio.run(main())
