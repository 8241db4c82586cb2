"""Performance benchmarks for object graph mapping.

These tests verify that mapping throughput meets acceptable thresholds.
Run with: pytest tests/test_performance.py -v
"""

import time
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from simple_mapper import MappingEngine

from .fixtures.models import Order, OrderDto, OrderLine, OrderLineDto


def create_orders(n_orders: int = 100, lines_per_order: int = 10, seed: int = 7) -> list[Order]:
    """Create orders with random quantities."""
    rng = np.random.default_rng(seed)
    quantities = rng.integers(1, 50, size=(n_orders, lines_per_order))
    return [
        Order(
            id=i,
            lines=[OrderLine(sku=f"SKU-{i}-{j}", quantity=int(q)) for j, q in enumerate(row)],
        )
        for i, row in enumerate(quantities)
    ]


@pytest.fixture
def engine():
    engine = MappingEngine()
    engine.create_map(Order, OrderDto)
    engine.create_map(OrderLine, OrderLineDto)
    engine.seal()
    return engine


class TestMappingPerformance:
    """Benchmark tests for single and batch mapping."""

    def test_single_order(self, engine):
        """Single order with 10 lines should map in <50ms."""
        order = create_orders(1)[0]
        engine.transform(order, OrderDto)

        start = time.perf_counter()
        dto = engine.transform(order, OrderDto)
        elapsed = time.perf_counter() - start

        assert len(dto.lines) == 10
        assert elapsed < 0.050, f"Mapping took {elapsed*1000:.1f}ms, expected <50ms"

    def test_batch_of_1000_orders(self, engine):
        """Batch of 1000 orders (10K lines) should map in <2s."""
        orders = create_orders(1000)

        start = time.perf_counter()
        dtos = engine.transform_list(orders, OrderDto)
        elapsed = time.perf_counter() - start

        assert len(dtos) == 1000
        total = sum(line.quantity for dto in dtos for line in dto.lines)
        expected = sum(line.quantity for order in orders for line in order.lines)
        assert total == expected
        assert elapsed < 2.0, f"Batch took {elapsed:.2f}s, expected <2s"

    def test_repeated_mappings(self, engine):
        """Repeated mappings should not accumulate state."""
        order = create_orders(1, lines_per_order=50)[0]
        engine.transform(order, OrderDto)

        times = []
        for _ in range(20):
            start = time.perf_counter()
            engine.transform(order, OrderDto)
            times.append(time.perf_counter() - start)

        avg_time = float(np.mean(times))
        max_time = float(np.max(times))

        assert max_time < avg_time * 10 or max_time < 0.001, f"Max time {max_time*1000:.1f}ms >> avg {avg_time*1000:.1f}ms"


class TestConcurrentMapping:
    """Parallel callers sharing one sealed engine."""

    def test_threads_share_engine(self, engine):
        """Concurrent transforms should produce independent, correct results."""
        orders = create_orders(200, lines_per_order=5)

        with ThreadPoolExecutor(max_workers=8) as pool:
            dtos = list(pool.map(lambda order: engine.transform(order, OrderDto), orders))

        assert [dto.id for dto in dtos] == [order.id for order in orders]
        for order, dto in zip(orders, dtos):
            assert [line.sku for line in dto.lines] == [line.sku for line in order.lines]
