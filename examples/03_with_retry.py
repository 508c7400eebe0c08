"""
Retry Logic Examples

Exponential backoff on 5xx, 429, timeouts and network errors. No retry on other 4xx.
"""

import asyncio
import time

from quickrequest import HttpStatusError, QuickRequestClient, RetryPolicy, TimeoutError


async def retry_on_503():
    print("\n=== Retry on 503 ===")

    async with QuickRequestClient("https://httpbin.org") as client:
        start = time.monotonic()
        try:
            # Задержки: 200ms, 400ms
            await client.get("/status/503", retry={"max_attempts": 3, "base_delay_ms": 200})
        except HttpStatusError as e:
            print(f"Gave up with {e.status} after {time.monotonic() - start:.1f}s")


async def no_retry_on_404():
    print("\n=== No Retry on 404 ===")

    async with QuickRequestClient("https://httpbin.org", retry=RetryPolicy(max_attempts=5)) as client:
        try:
            await client.get("/status/404")
        except HttpStatusError as e:
            print(f"Failed immediately: {e.status}")


async def retry_timeouts():
    print("\n=== Retry Timeouts ===")

    async with QuickRequestClient("https://httpbin.org", timeout_ms=500) as client:
        try:
            await client.get("/delay/2", retry={"max_attempts": 2, "base_delay_ms": 100})
        except TimeoutError as e:
            print(f"Timed out on every attempt: is_timeout={e.is_timeout}")


async def main():
    await retry_on_503()
    await no_retry_on_404()
    await retry_timeouts()


if __name__ == "__main__":
    asyncio.run(main())
