import gc
import tracemalloc

from lazy import create_iterator
from sources import lazy_range, repeat


class TestMemoryEfficiency:
    """Test memory efficiency of lazy evaluation"""

    def test_memory_scales_with_output_not_input(self):
        """Test that memory usage scales with output size, not input size"""
        gc.collect()
        tracemalloc.start()
        baseline = tracemalloc.get_traced_memory()[0]

        result = (
            lazy_range(0, 1_000_000)
            .map(lambda x: x * x)
            .filter(lambda x: x % 1000 == 0)
            .take(10)
            .to_array()
        )

        _, peak = tracemalloc.get_traced_memory()
        tracemalloc.stop()

        assert len(result) == 10
        assert peak - baseline < 1_000_000, f"Used too much memory: {peak - baseline} bytes"

    def test_no_intermediate_collection_storage(self):
        """Test that intermediate results are not stored in memory"""
        gc.collect()
        tracemalloc.start()
        baseline = tracemalloc.get_traced_memory()[0]

        result = (
            create_iterator(range(100))
            .map(lambda x: [x] * 1000)
            .take(5)
            .to_array()
        )

        _, peak = tracemalloc.get_traced_memory()
        tracemalloc.stop()

        assert len(result) == 5
        # five kept lists of 1000 pointers, far below the 100 a buffering map would build
        assert peak - baseline < 10_000_000, f"Used too much memory: {peak - baseline} bytes"

    def test_streaming_reduction_over_infinite_source(self):
        """Test that bounded reductions over an infinite source run in constant memory"""
        gc.collect()
        tracemalloc.start()
        baseline = tracemalloc.get_traced_memory()[0]

        total = repeat(1).take(200_000).reduce(lambda acc, x: acc + x, 0)

        _, peak = tracemalloc.get_traced_memory()
        tracemalloc.stop()

        assert total == 200_000
        assert peak - baseline < 500_000, f"Used too much memory: {peak - baseline} bytes"
