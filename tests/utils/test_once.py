"""
Unit tests for OnceCell.
"""

import threading
import time

import pytest

from src.utils import OnceCell


class TestOnceCell:
    """Tests for the compute-once cell."""

    def test_starts_uninitialised(self):
        """Test that a new cell has no value."""
        cell = OnceCell()

        assert cell.is_initialised is False
        with pytest.raises(RuntimeError, match="not been initialised"):
            cell.get()

    def test_of_holds_value(self):
        """Test a cell created with a value."""
        cell = OnceCell.of("ready")

        assert cell.is_initialised
        assert cell.get() == "ready"
        assert cell.get_or_init(lambda: "other") == "ready"

    def test_factory_runs_once(self):
        """Test that the factory runs only on the first call."""
        cell = OnceCell()
        calls = []

        def factory():
            calls.append(1)
            return len(calls)

        assert cell.get_or_init(factory) == 1
        assert cell.get_or_init(factory) == 1
        assert cell.get() == 1
        assert len(calls) == 1, f"Factory ran {len(calls)} times, expected once"

    def test_stores_none(self):
        """Test that None is a stored value, not a missing one."""
        cell = OnceCell()
        calls = []

        cell.get_or_init(lambda: calls.append(1))
        cell.get_or_init(lambda: calls.append(1))

        assert cell.is_initialised
        assert len(calls) == 1, f"Factory ran {len(calls)} times, expected once"

    def test_failed_factory_is_not_cached(self):
        """Test that a raising factory leaves the cell empty."""
        cell = OnceCell()

        def failing():
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            cell.get_or_init(failing)

        assert cell.is_initialised is False
        assert cell.get_or_init(lambda: 5) == 5

    def test_concurrent_callers_share_one_computation(self):
        """Test that racing callers see one computed value."""
        cell = OnceCell()
        calls = []
        results = []
        barrier = threading.Barrier(10)

        def factory():
            calls.append(1)
            time.sleep(0.05)
            return object()

        def worker():
            barrier.wait()
            results.append(cell.get_or_init(factory))

        threads = [threading.Thread(target=worker) for _ in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(calls) == 1, f"Factory ran {len(calls)} times, expected once"
        assert len(results) == 10
        assert all(result is results[0] for result in results), "Callers got different objects"
