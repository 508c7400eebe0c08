"""
Basic Usage Examples

GET with query, POST with JSON body, absolute URLs and error handling.
"""

import asyncio

from quickrequest import HttpError, HttpStatusError, QuickRequestClient


async def basic_requests():
    """GET and POST against a base URL."""
    print("\n=== Basic Requests ===")

    async with QuickRequestClient("https://jsonplaceholder.typicode.com", timeout_ms=8000) as client:
        post = await client.get("/posts/1")
        print(f"Title: {post['title']}")

        comments = await client.get("/comments", query={"postId": 1})
        print(f"Comments: {len(comments)}")

        created = await client.post("/posts", {"title": "Test Post", "body": "Hello", "userId": 1})
        print(f"Created id: {created['id']}")

        # Абсолютный URL игнорирует base_url
        status = await client.get("https://httpbin.org/get")
        print(f"httpbin url: {status['url']}")


async def error_handling():
    """Every failure is one HttpError with classification flags."""
    print("\n=== Error Handling ===")

    async with QuickRequestClient("https://httpbin.org") as client:
        try:
            await client.get("/status/404")
        except HttpStatusError as e:
            print(f"Status error: {e.status} {e.status_text} (retryable={e.retryable})")
        except HttpError as e:
            print(f"Other failure: {e!r}")


async def main():
    await basic_requests()
    await error_handling()


if __name__ == "__main__":
    asyncio.run(main())
