"""
Configuration Examples

ClientConfig, hooks, logging and loading settings from the environment.
"""

import asyncio

from quickrequest import ClientConfig, LoggingConfig, QuickRequestClient, load_from_env


def add_auth(options):
    """before_request: runs once per call on a copy of the options."""
    options.headers = {**(options.headers or {}), "Authorization": "Bearer demo-token"}
    return options


def log_failures(response, options, error=None):
    """after_response: also called with response=None when the attempt failed."""
    if error is not None:
        print(f"  hook saw failure for {options.url}: {error!r}")


async def explicit_config():
    print("\n=== Explicit Config ===")

    config = ClientConfig.create(
        base_url="https://httpbin.org",
        headers={"X-App": "examples"},
        timeout_ms=5000,
        before_request=add_auth,
        after_response=log_failures,
        logging=LoggingConfig.create(level="INFO", format="text"),
    )

    async with QuickRequestClient(config=config) as client:
        echoed = await client.get("/headers")
        print(f"Sent headers: {sorted(echoed['headers'])}")


async def env_config():
    """QUICKREQUEST_BASE_URL, QUICKREQUEST_TIMEOUT_MS, ... or a .env file."""
    print("\n=== Environment Config ===")

    config = load_from_env(base_url="https://httpbin.org")
    async with QuickRequestClient(config=config) as client:
        data = await client.get("/get", query={"source": "env"})
        print(f"Args: {data['args']}")


async def main():
    await explicit_config()
    await env_config()


if __name__ == "__main__":
    asyncio.run(main())
