"""Example application logging through chroniclepy with a live console.

Run with:
    python -m examples.console_example

What it shows:
    - A registry logger emitting tagged, structured messages
    - A console buffer keeping the most recent records
    - The stdlib ``logging`` front-end routed through ``bootstrap()``
    - An async message producer via ``emit_async``
    - NDJSON export of the console contents
"""

import asyncio
import logging
import sys

from chroniclepy import (
    FacadeLevel,
    Severity,
    bootstrap,
    enable_console,
    encode_records,
    get_logger,
    tags,
)

# Platform sink output (StdlibSink) goes to stderr
logging.basicConfig(level=logging.DEBUG, format="%(levelname)-8s %(name)s: %(message)s")

network = get_logger("com.example.network")
network.set_minimum_level(Severity.INFO)
console = enable_console(network, capacity=5)

# Third-party code using logging.getLogger() now reaches chroniclepy too
bootstrap(FacadeLevel.INFO)


async def fetch_status() -> str:
    """Simulate a slow lookup used as an async message."""
    await asyncio.sleep(0.01)
    return "status endpoint healthy"


async def main() -> None:
    network.info("Connecting", tags=[tags.NETWORK], metadata={"host": "api.example.com", "port": 443})
    network.debug(lambda: "never rendered: below the minimum level")

    with network.span("handshake", metadata={"tls": True}):
        network.notice("Handshake complete", tags=[tags.NETWORK, tags.AUTH])

    network.emit_batch(
        ["retry 1", "retry 2"], Severity.WARNING, tags=[tags.NETWORK], metadata={"backoff": 0.5}
    )

    task = network.emit_async(fetch_status, Severity.INFO, tags=[tags.NETWORK])
    if task is not None:
        await task

    logging.getLogger("com.example.network").error("Upstream closed the connection")

    sys.stdout.write(encode_records(console.snapshot()))


if __name__ == "__main__":
    asyncio.run(main())
