"""
Full replication demo:
- basic write-to-primary / read-from-standby flow
- ad-hoc write/read timing loop
- consistency check over a batch of writes
"""

import argparse
import sys
import time
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

import psycopg2

from replcheck import config
from replcheck.config import ContainerConfig
from replcheck.container import ContainerExecError, replication_status, write_to_primary
from replcheck.database import Database, ReplicationRow

SEPARATOR = "=" * 60


def average(values: List[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


@dataclass
class TimingSummary:
    avg_write: float
    avg_read: float

    @property
    def ratio(self) -> float:
        return self.avg_write / self.avg_read if self.avg_read else 0.0


class ReplicationClient:
    """Reads from the standby, writes to the primary through the container"""

    def __init__(self, standby: Database, container: ContainerConfig):
        self.standby = standby
        self.container = container

    @classmethod
    def connect(cls) -> "ReplicationClient":
        standby_config = config.standby_config()
        container = config.container_config()
        standby = Database.connect(standby_config)

        print("✅ Replication database connections initialized")
        print(f"   - Reads: STANDBY ({standby_config.describe()})")
        print(f"   - Writes: PRIMARY (via {container.runtime} exec {container.container})")
        return cls(standby, container)

    def write_data(self, data: str) -> bool:
        """Write always goes to primary"""
        try:
            result = write_to_primary(self.container, data)
        except ContainerExecError as e:
            print(f"❌ Write failed: {e}")
            return False

        if not result.ok:
            print(f"❌ Write failed: {result.output.strip()}")
            return False

        if result.row_id is not None:
            print(f"📝 Written to PRIMARY: ID={result.row_id}, data='{data}'")
        else:
            print(f"📝 Written to PRIMARY: data='{data}'")
        return True

    def read_data(self, limit: int = 5) -> List[ReplicationRow]:
        rows = self.standby.read_latest(limit)
        print(f"📖 Read from STANDBY: {len(rows)} rows")
        return rows

    def data_count(self) -> int:
        return self.standby.count_rows()

    def show_replication_status(self) -> Optional[float]:
        """Print primary-side replication state, return lag in seconds"""
        try:
            status = replication_status(self.container)
        except ContainerExecError as e:
            print(f"❌ Replication status unavailable: {e}")
            return None

        if status is None:
            print("✅ Replication connection checked (no streaming standby reported)")
            return 0.0

        print(
            f"⏱️  Replication state: {status.state}, lag: {status.lag_seconds:.3f}s "
            f"(client: {status.client_addr})"
        )
        return status.lag_seconds

    def close(self):
        self.standby.close()


class ReplicationDemo:
    def __init__(self, client: ReplicationClient):
        self.client = client

    def run_basic_demo(self) -> bool:
        print("\n" + SEPARATOR)
        print("🚀 Basic read/write split demo")
        print(SEPARATOR)

        try:
            initial_count = self.client.data_count()
        except psycopg2.Error as e:
            print(f"❌ Initial row count error: {e}")
            return False
        print(f"📊 Row count at start: {initial_count}")

        test_data = f"Demo data at {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}"
        if not self.client.write_data(test_data):
            print("❌ Write failed, aborting the demo")
            return False

        time.sleep(1)
        self.client.show_replication_status()

        try:
            standby_rows = self.client.read_data(5)
            final_count = self.client.data_count()
        except psycopg2.Error as e:
            print(f"❌ Standby read error: {e}")
            return False

        print("\n📊 Sync result:")
        print(f"   Start: {initial_count} rows")
        print(f"   End: {final_count} rows")
        print(f"   Increase: {final_count - initial_count} rows")

        if final_count > initial_count:
            print("   ✅ Data replicated to the standby")
            if standby_rows:
                latest = standby_rows[0]
                print(f"   📄 Latest row: ID={latest.id}, data='{latest.data}'")
        else:
            print("   ⚠️  Data did not replicate yet")

        return True

    def run_performance_test(self, iterations: int = 3) -> Optional[TimingSummary]:
        print("\n" + SEPARATOR)
        print(f"⚡ Performance test ({iterations} iterations)")
        print(SEPARATOR)

        write_times = []
        read_times = []

        for i in range(iterations):
            print(f"\n🔄 Run {i + 1}/{iterations}")

            start = time.time()
            test_data = (
                f"Performance test #{i + 1} at "
                f"{datetime.now().strftime('%Y-%m-%dT%H:%M:%S')}"
            )
            success = self.client.write_data(test_data)
            write_time = time.time() - start

            if not success:
                print("   ❌ Write failed")
                continue
            write_times.append(write_time)
            print(f"   📝 Write time: {write_time:.3f}s")

            time.sleep(0.5)

            start = time.time()
            try:
                self.client.read_data(1)
            except psycopg2.Error as e:
                print(f"   ❌ Read failed: {e}")
                continue
            read_time = time.time() - start
            read_times.append(read_time)
            print(f"   📖 Read time: {read_time:.3f}s")

        if not write_times or not read_times:
            print("❌ No valid timing data collected")
            return None

        summary = TimingSummary(average(write_times), average(read_times))
        print("\n📈 Performance results:")
        print(f"   Average write time: {summary.avg_write:.3f}s")
        print(f"   Average read time: {summary.avg_read:.3f}s")
        print(f"   Write/read ratio: {summary.ratio:.1f}x")

        print("\n📊 Final replication status:")
        self.client.show_replication_status()
        return summary

    def run_consistency_check(self, writes: int = 3) -> bool:
        print("\n" + SEPARATOR)
        print("🔍 Data consistency check")
        print(SEPARATOR)

        print("📝 Writing a batch of rows...")
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")

        success_count = 0
        for i in range(writes):
            data = f"Consistency test {i + 1} - {stamp}"
            if self.client.write_data(data):
                print(f"   ✅ Row {i + 1} written")
                success_count += 1
            else:
                print(f"   ❌ Row {i + 1} failed")
            time.sleep(0.3)

        print("\n⏱️  Waiting for replication...")
        time.sleep(2)

        print("\n📖 Checking consistency...")
        try:
            rows = self.client.read_data(5)
        except psycopg2.Error as e:
            print(f"❌ Read error: {e}")
            return False

        synced_count = 0
        for row in rows:
            if stamp in row.data:
                synced_count += 1
                print(f"   ✅ Synced: ID={row.id}, data='{row.data}'")

        print("\n📊 Consistency result:")
        print(f"   Written: {success_count} rows")
        print(f"   Synced: {synced_count} rows")

        if synced_count >= success_count:
            print("   🎉 Consistency check passed!")
            return True
        print("   ⚠️  Some rows may not have replicated yet")
        return False


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="PostgreSQL read/write split demo")
    parser.add_argument("--iterations", type=int, default=3,
                        help="performance test iterations (default: 3)")
    parser.add_argument("--skip-performance", action="store_true",
                        help="skip the performance test")
    parser.add_argument("--verbose", action="store_true", help="debug logging")
    args = parser.parse_args(argv)

    config.load_env_file()
    config.setup_logging(args.verbose)

    try:
        client = ReplicationClient.connect()
    except psycopg2.Error as e:
        print(f"❌ Demo init error: {e}")
        return 1

    print("🎯 PostgreSQL read/write split demo")
    print("🔗 Replication check on the docker setup")

    demo = ReplicationDemo(client)
    try:
        if not demo.run_basic_demo():
            print("\n❌ Basic demo failed, skipping the remaining tests")
            return 1

        if not args.skip_performance:
            demo.run_performance_test(args.iterations)
        consistent = demo.run_consistency_check()

        print("\n🎉 All demos finished!")
        print("📋 Covered:")
        print("   ✅ Basic read/write split")
        if not args.skip_performance:
            print("   ✅ Performance measurement")
        print(f"   {'✅' if consistent else '⚠️ '} Data consistency")
        print("   ✅ Replication monitoring")
        return 0 if consistent else 1
    finally:
        client.close()


if __name__ == "__main__":
    sys.exit(main())
