"""
Poll replication lag as reported by the primary and print it.
Fixed number of polls at a fixed interval, then exit.
"""

import argparse
import sys
import time

from replcheck import config
from replcheck.container import ContainerExecError, replication_status

# Anything above this is treated as broken replication
DEFAULT_MAX_LAG_SECONDS = 10.0


def poll_lag(container, count: int = 5, interval: float = 1.0,
             max_lag: float = DEFAULT_MAX_LAG_SECONDS) -> bool:
    print("=" * 60)
    print("REPLICATION LAG")
    print("=" * 60)

    ok = True
    worst = 0.0
    for i in range(count):
        if i:
            time.sleep(interval)

        try:
            status = replication_status(container)
        except ContainerExecError as e:
            print(f"  [{i + 1}/{count}] ❌ Status query failed: {e}")
            ok = False
            continue

        if status is None:
            print(f"  [{i + 1}/{count}] ⚠️  No streaming standby reported")
            continue

        lag = status.lag_seconds
        worst = max(worst, lag)
        marker = "✅" if lag <= max_lag else "❌"
        print(f"  [{i + 1}/{count}] {marker} {status.state}: {lag:.3f}s lag "
              f"(client: {status.client_addr}, replay: {status.replay_lsn})")
        if lag > max_lag:
            ok = False

    print("-" * 60)
    print(f"Worst lag: {worst:.3f}s (limit {max_lag:.1f}s)")
    return ok


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Poll PostgreSQL replication lag")
    parser.add_argument("--count", type=int, default=5, help="number of polls (default: 5)")
    parser.add_argument("--interval", type=float, default=1.0,
                        help="seconds between polls (default: 1.0)")
    parser.add_argument("--max-lag", type=float, default=DEFAULT_MAX_LAG_SECONDS,
                        help="lag in seconds considered a failure (default: 10.0)")
    parser.add_argument("--verbose", action="store_true", help="debug logging")
    args = parser.parse_args(argv)

    config.load_env_file()
    config.setup_logging(args.verbose)

    ok = poll_lag(config.container_config(), args.count, args.interval, args.max_lag)
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
