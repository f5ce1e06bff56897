"""Smoke test against a local Redis server."""

import asyncio
import logging

import redikit


async def _main() -> None:
    async with redikit.Redis.from_url("redis://127.0.0.1:6379") as client:
        r1 = await client.hset("foo", {"foo": "bar", "field": "value"})
        print(r1, type(r1))

        r2 = await client.hget("foo", "foo")
        print(r2, type(r2))

        r3 = await client.hgetall("foo")
        print(r3)

        r4 = await client.hdel("foo", "field")
        print(r4)

        async for key in client.scan_iter(match="f*").items():
            print("scanned", key)

        async with client.transaction() as tx:
            await tx.watch("foo")
            await tx.multi()
            await tx.hset("foo", {"counter": 1})
            await tx.hincrby("foo", "counter", 41)
            result = await tx.exec()

        print(result)


logging.basicConfig(level=logging.DEBUG)
asyncio.run(_main())
