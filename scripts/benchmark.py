#!/usr/bin/env python3
"""
Ripple Performance Benchmarks

Measures how the reactive engine scales on its four hot paths and renders the
results with rich:

- Wrapping: eager wrap of a wide nested document
- Deep writes: mutations propagated through a long chain of pipes
- List churn: structural mutations with repiping of every moved element
- Memo invalidation: many memoized functions listening to one field

Usage:
    python scripts/benchmark.py            # Run all benchmarks
    python scripts/benchmark.py --config   # Show benchmark configuration
    python scripts/benchmark.py --quiet    # Only the final table

Configuration:
    Adjust the constants at the top of the file to change benchmark parameters.
"""

import argparse
import time
from typing import Any, Callable, Dict

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ripple import Registry, RippleConfig

# Configuration constants - adjust these to change benchmark behavior
TIME_LIMIT_SECONDS = 0.5  # Stop scaling once one run takes this long
STARTING_N = 10  # Starting workload size
SCALE_FACTOR = 1.5  # How much to multiply N by each iteration
CHAIN_DEPTH = 100  # Nesting depth for the deep write benchmark


def _nested_document(width: int) -> Dict[str, Any]:
    return {f"user{i}": {"name": f"u{i}", "tags": [i, i + 1]} for i in range(width)}


def _deep_chain(registry: Registry, depth: int):
    """Wrap a ``depth``-level nested dict and return (root, leaf) surrogates."""
    raw: Dict[str, Any] = {"value": 0}
    for _ in range(depth):
        raw = {"child": raw}
    root = registry.wrap(raw)
    leaf = root
    for _ in range(depth):
        leaf = leaf["child"]
    return root, leaf


class RippleBenchmark:
    """Rich-formatted display for Ripple performance benchmarking."""

    def __init__(self, quiet: bool = False):
        self.console = Console()
        self.quiet = quiet
        self.results: Dict[str, Dict[str, Any]] = {}

    def run_benchmarks(self):
        start_time = time.time()
        self._display_header()

        self._run("Eager wrap", self._wrap_operation, "keys")
        self._run("Deep write", self._deep_write_operation, "writes")
        self._run("List churn", self._list_churn_operation, "inserts")
        self._run("Memo fan-out", self._memo_fanout_operation, "memos")

        self._display_final_results(start_time)

    # ------------------------------------------------------------------
    # Operations: each takes a workload size and returns operations done
    # ------------------------------------------------------------------

    @staticmethod
    def _wrap_operation(n: int) -> int:
        registry = Registry()
        registry.wrap(_nested_document(n))
        return n

    @staticmethod
    def _deep_write_operation(n: int) -> int:
        registry = Registry()
        root, leaf = _deep_chain(registry, CHAIN_DEPTH)
        received = []
        registry.watch(root, received.append)
        for value in range(n):
            leaf["value"] = value + 1
        assert len(received) == n
        return n

    @staticmethod
    def _list_churn_operation(n: int) -> int:
        registry = Registry()
        rows = registry.wrap([{"id": i} for i in range(n)])
        for i in range(50):
            rows.insert(0, {"id": -i})
        return 50

    @staticmethod
    def _memo_fanout_operation(n: int) -> int:
        registry = Registry(RippleConfig(debounce=60))
        state = registry.wrap({"count": 0})
        memos = []
        for _ in range(n):
            _, memo = registry.memoize(lambda: state["count"])
            memo()
            memos.append(memo)
        state["count"] = 1
        for memo in memos:
            memo.flush()
            memo.dispose()
        return n

    # ------------------------------------------------------------------
    # Driver and display
    # ------------------------------------------------------------------

    def _run(self, name: str, operation: Callable[[int], int], unit: str):
        if not self.quiet:
            self.console.print(f"[yellow]Running {name}...[/yellow]")
        result = self._run_adaptive_benchmark(operation)
        result["unit"] = unit
        self.results[name] = result
        if not self.quiet:
            self.console.print(
                f"[green]✓[/green] {name}: {result['operations_per_second']:,.0f} ops/sec "
                f"({result['max_n']} {unit})"
            )

    def _run_adaptive_benchmark(self, operation: Callable[[int], int]) -> Dict[str, Any]:
        """Scale the workload until one run reaches the time limit."""
        n = STARTING_N
        while True:
            start_time = time.perf_counter()
            performed = operation(n)
            elapsed = max(time.perf_counter() - start_time, 1e-9)

            result = {
                "max_n": n,
                "operation_time": elapsed,
                "operations_per_second": performed / elapsed,
            }
            if elapsed >= TIME_LIMIT_SECONDS:
                return result
            n = int(n * SCALE_FACTOR) + 1

    def _display_header(self):
        header = Panel(
            Align.center("Ripple Performance Benchmark Suite"),
            title="Ripple Benchmarks",
            border_style="blue",
        )
        self.console.print(header)
        self.console.print()

    def _display_final_results(self, start_time: float):
        elapsed = time.time() - start_time

        table = Table(title="Final Benchmark Results")
        table.add_column("Benchmark", style="cyan", no_wrap=True)
        table.add_column("Max Workload", style="magenta")
        table.add_column("Performance", style="green", justify="right")
        table.add_column("Per Operation", style="yellow", justify="right")

        for name, result in self.results.items():
            per_op_us = 1e6 / result["operations_per_second"]
            table.add_row(
                name,
                f"{result['max_n']:,} {result['unit']}",
                f"{result['operations_per_second']:,.0f} ops/sec",
                f"{per_op_us:,.1f}μs",
            )

        self.console.print()
        self.console.print(table)
        self.console.print()
        self.console.print(f"[dim]Benchmark completed in {elapsed:.2f} seconds[/dim]")


def print_config():
    print("Ripple Benchmark Configuration:")
    print(f"  TIME_LIMIT_SECONDS: {TIME_LIMIT_SECONDS}")
    print(f"  STARTING_N: {STARTING_N}")
    print(f"  SCALE_FACTOR: {SCALE_FACTOR}")
    print(f"  CHAIN_DEPTH: {CHAIN_DEPTH}")


def main():
    parser = argparse.ArgumentParser(description="Ripple Performance Benchmarks")
    parser.add_argument(
        "--config", action="store_true", help="Show current benchmark configuration"
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output, show only final results",
    )
    args = parser.parse_args()

    if args.config:
        print_config()
        return

    if not args.quiet:
        print_config()
        print()

    RippleBenchmark(quiet=args.quiet).run_benchmarks()


if __name__ == "__main__":
    main()
