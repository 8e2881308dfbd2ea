import asyncio

from async_lazy import from_async
from collection import chunk
from lazy import SourceRestartError, create_iterator
from sources import cycle, lazy_chunk, lazy_enumerate, lazy_range, lazy_zip, repeat
from utils import run_pipeline, setup_logging

setup_logging()


def traced(label, fn):
    def step(value):
        result = fn(value)
        print(f"  {label}({value}) -> {result}")
        return result
    return step


print("\n--- Demo: elements flow one at a time ---")
pipeline = (
    lazy_range(1, 1_000_000)
    .filter(traced("is_odd", lambda n: n % 2 == 1))
    .map(traced("cube", lambda n: n ** 3))
    .take(3)
)
print("Pipeline built; nothing has been pulled yet.")
print(f"to_array() -> {pipeline.to_array()}\n")

print("--- Demo: every terminal call starts over ---")
print(f"first() -> {pipeline.first()}\n")

print("--- Demo: one-shot sources ---")
readings = create_iterator(line.strip() for line in ["12", "7", "30"]).map(int)
print("First pass:", readings.to_array())
try:
    readings.to_array()
except SourceRestartError as exc:
    print("Second pass refused:", exc)
print()

print("--- Demo: bounding infinite sources ---")
print("Divisible by 7 and 11:",
      lazy_range(1, float("inf")).filter(lambda n: n % 7 == 0 and n % 11 == 0).take(5).to_array())
print("Cycled:", cycle(["red", "green", "blue"]).take(7).to_array())
print("Repeated:", repeat("x", 5).to_array())
print("First match on repeat(1):", repeat(1).find(lambda _: True))
print()

print("--- Demo: pairing and grouping ---")
for i, fruit in lazy_enumerate(["apple", "banana", "cherry"]):
    print(f"  {i}: {fruit}")
print("Zipped:", lazy_zip(["Alice", "Bob", "Charlie"], [95, 87]).to_array())
print("Lazy chunks:", lazy_chunk(lazy_range(1, 11), 3).to_array())
print("Eager chunks:", chunk([1, 2, 3, 4, 5], 2))
print()

print("--- Demo: asynchronous source ---")


async def ticker():
    for n in range(1, 6):
        await asyncio.sleep(0.05)
        yield n


async def run_async_demo():
    doubled = await from_async(ticker).map(lambda n: n * 2).take(3).to_array()
    print("Async doubled (first 3):", doubled)

asyncio.run(run_async_demo())
print()

print("--- Demo: declarative pipeline ---")
report = run_pipeline(range(1, 101), {
    "operations": [
        {"type": "filter", "function": "is_even"},
        {"type": "map", "function": "square"},
    ],
    "terminal": "to_array",
    "limit": 5
})
print(f"Result: {report.result} in {report.performance.execution_time_ms:.2f}ms")
