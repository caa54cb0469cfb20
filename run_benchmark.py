#!/usr/bin/env python3
"""
Table Latency Benchmarking - CLI Tool

Runs common table CRUD and query operations against an entity store and
reports per-operation latency percentiles:
- Insert, point retrieve, query on a secondary property, replace, delete
- Each operation run N times (default 100), p0/p50/p90/p99 per phase
- Compare the Cosmos DB Table API ("Premium") with Azure Table storage
  ("Standard"), or with DynamoDB

Usage Examples:
    # 100 iterations against the default (Premium) target
    python run_benchmark.py

    # 500 iterations against Azure Table storage
    python run_benchmark.py Standard 500

    # Dry run without any credentials
    python run_benchmark.py Premium 10 --backend memory --no-wait

    # Same workload on DynamoDB, results saved as JSON
    python run_benchmark.py Premium 200 --backend dynamodb --output results.json
"""

import argparse
import sys
import json
import time
import logging
from datetime import datetime
from typing import List, Optional

from config import (
    BACKEND_CONFIGS, BENCHMARK_CONFIG, ConnectionTarget,
    resolve_target, parse_iterations, get_backend_config,
    validate_backend_config, print_config
)
from core.store import StoreType, StoreFactory
from core.benchmark import TableBenchmark
from utils.random_strings import RandomStringGenerator
import backends  # noqa: F401  (registers stores with StoreFactory)

logger = logging.getLogger(__name__)


def positive_int(value: str) -> int:
    """argparse type for the iteration and worker counts"""
    try:
        return parse_iterations(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid positive integer: {value!r}")


def configure_logging(level: str = 'WARNING'):
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


class BenchmarkCLI:
    """Main CLI handler for the benchmark"""

    def __init__(self):
        self.results = {}
        self.start_time = None

    def list_backends(self):
        """List all available backends and their status"""
        print("\n" + "=" * 80)
        print("AVAILABLE BACKENDS")
        print("=" * 80)

        for backend_name, config in BACKEND_CONFIGS.items():
            enabled = config.get('enabled', False)
            status = "✅ Enabled" if enabled else "❌ Disabled"
            registered = StoreFactory.is_registered(StoreType(backend_name))

            print(f"\n{backend_name.upper()}")
            print(f"  {config.get('description', '')}")
            print(f"  Status: {status}")
            print(f"  Registered: {'✅' if registered else '❌'}")

            if enabled:
                is_valid, msg = validate_backend_config(backend_name)
                if is_valid:
                    print(f"  Config: ✅ Valid")
                else:
                    print(f"  Config: ❌ {msg}")

        print("\n" + "=" * 80 + "\n")

    def show_configuration(self):
        """Show current configuration"""
        print_config()

    def run_benchmark(
        self,
        target: ConnectionTarget,
        num_iterations: int,
        backend_name: str = 'azure_tables',
        table_name: str = BENCHMARK_CONFIG['table_name'],
        workers: int = BENCHMARK_CONFIG['workers'],
        seed: Optional[int] = None,
        output_file: Optional[str] = None,
        stream=None,
    ) -> dict:
        """Run the five-phase benchmark on one store"""
        self.start_time = time.time()

        # Resolving the config fails fast on a missing connection string
        store_config = get_backend_config(backend_name, target)
        store = StoreFactory.create(StoreType(backend_name), store_config)

        print("\n" + "=" * 80)
        print("BENCHMARK CONFIGURATION")
        print("=" * 80)
        print(f"Backend: {backend_name}")
        if backend_name == 'azure_tables':
            print(f"Target: {target.name} ({target.description})")
        print(f"Table: {table_name}")
        print(f"Iterations: {num_iterations}")
        print(f"Workers: {workers}")
        print("=" * 80 + "\n")

        with store:
            benchmark = TableBenchmark(
                store,
                num_iterations,
                generator=RandomStringGenerator(seed),
                stream=stream,
                table_name=table_name,
                workers=workers,
                email_domain=BENCHMARK_CONFIG['email_domain'],
            )
            phases = benchmark.run()
            store_info = store.get_store_info()

        self.results = {
            'configuration': {
                'backend': backend_name,
                'target': target.name,
                'table': table_name,
                'num_iterations': num_iterations,
                'workers': workers,
                'store': store_info,
            },
            'started_at': datetime.fromtimestamp(self.start_time).isoformat(),
            'total_time_sec': time.time() - self.start_time,
            'phases': {name: metrics.get_summary() for name, metrics in phases.items()},
        }

        if output_file:
            with open(output_file, 'w') as f:
                json.dump(self.results, f, indent=2)
            print(f"📄 Results saved to: {output_file}")

        return self.results


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Table Latency Benchmarking",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Default target, 100 iterations
  python run_benchmark.py

  # Azure Table storage, 500 iterations
  python run_benchmark.py Standard 500

  # Dry run with the in-process store
  python run_benchmark.py Premium 10 --backend memory --no-wait

Connection strings are read from PREMIUM_STORAGE_CONNECTION_STRING and
STANDARD_STORAGE_CONNECTION_STRING (environment or .env file).
        """
    )

    # Positional arguments, in the order the tool has always taken them
    parser.add_argument('target', nargs='?', default=None,
                        help="Connection target: 'Standard', anything else uses the default (Premium)")
    parser.add_argument('iterations', nargs='?', type=positive_int,
                        default=BENCHMARK_CONFIG['num_iterations'],
                        help=f"Iterations per phase (default: {BENCHMARK_CONFIG['num_iterations']})")

    # Action commands
    parser.add_argument('--list-backends', action='store_true',
                        help='List all available backends and their status')
    parser.add_argument('--show-config', action='store_true',
                        help='Show current configuration')

    # Benchmark configuration
    parser.add_argument('--backend', choices=[st.value for st in StoreType],
                        default=StoreType.AZURE_TABLES.value,
                        help=f"Entity store to benchmark (default: {StoreType.AZURE_TABLES.value})")
    parser.add_argument('--table', type=str, default=BENCHMARK_CONFIG['table_name'],
                        help=f"Table name (default: {BENCHMARK_CONFIG['table_name']})")
    parser.add_argument('--workers', type=positive_int, default=BENCHMARK_CONFIG['workers'],
                        help=f"Parallel calls within a phase (default: {BENCHMARK_CONFIG['workers']})")
    parser.add_argument('--seed', type=int,
                        help='Seed for the random string generator')

    # Output options
    parser.add_argument('--output', type=str,
                        help='Output file for benchmark results (JSON format)')
    parser.add_argument('--no-wait', action='store_true',
                        help="Don't wait for a keypress before exiting")
    parser.add_argument('--log-level', default='WARNING',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Diagnostic log level (default: WARNING)')

    return parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.log_level)

    cli = BenchmarkCLI()

    if args.list_backends:
        cli.list_backends()
        return

    if args.show_config:
        cli.show_configuration()
        return

    target = resolve_target(args.target)
    logger.info("Target %s, %d iterations, backend %s", target.name, args.iterations, args.backend)

    cli.run_benchmark(
        target=target,
        num_iterations=args.iterations,
        backend_name=args.backend,
        table_name=args.table,
        workers=args.workers,
        seed=args.seed,
        output_file=args.output,
    )

    if not args.no_wait and sys.stdin.isatty():
        input("Press any key to exit...")


def cli():
    try:
        main()
    except KeyboardInterrupt:
        print("\n\n⚠️  Benchmark interrupted by user")
        sys.exit(1)
    except Exception as e:
        print(f"\n❌ Error: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    cli()
