"""
Running total: a generator consumed with backpressure, values sent back in.

Run: python examples/running_total.py
"""
import asyncio

from genpipe import END, ConsoleLogger, GeneratorDriver


def running_total(limit):
    total = 0
    try:
        while total < limit:
            amount = yield total
            total += amount or 0
    finally:
        print("producer cleaned up")
    return total


async def main():
    log = ConsoleLogger(level="DEBUG")
    gen = GeneratorDriver(running_total, 10, logger=log)
    while (total := await gen.continue_()) is not END:
        print("total so far:", total)
        gen.send(3)
    print("final:", await gen.get_return())

    # Disposing stops the producer at its current yield
    gen = GeneratorDriver(running_total, 100)
    print("first:", await gen.continue_())
    gen.dispose()
    print("after dispose:", await gen.get_return())


if __name__ == "__main__":
    asyncio.run(main())
