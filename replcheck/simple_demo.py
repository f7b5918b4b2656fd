"""
Simple read/write split demo:
read from the standby, write to the primary via docker exec,
wait, and check the standby picked the row up.
"""

import argparse
import sys
import time
from dataclasses import replace
from datetime import datetime

import psycopg2

from replcheck import config
from replcheck.container import ContainerExecError, write_to_primary
from replcheck.database import Database

REPLICATION_WAIT_SECONDS = 2


def simple_demo() -> bool:
    print("🎯 Simple read/write split test")

    print("\n📖 Reading from the standby...")
    standby = config.standby_config()
    standby = replace(standby, host=config.force_ipv4(standby.host))

    try:
        standby_db = Database.connect(standby)
    except psycopg2.Error as e:
        print(f"❌ Standby connection error: {e}")
        return False

    with standby_db:
        try:
            count_before = standby_db.count_rows()
            print(f"   Row count before: {count_before}")
            latest = standby_db.read_latest(3)
        except psycopg2.Error as e:
            print(f"❌ Standby read error: {e}")
            return False

        print("   Latest rows:")
        for row in latest:
            print(f"     ID:{row.id} | {row.data} | {row.format_time()}")

        print("\n📝 Writing to the primary...")
        print("   Note: writes go through docker exec into the primary container")
        test_data = f"Simple test at {datetime.now().strftime('%Y-%m-%dT%H:%M:%S')}"
        try:
            result = write_to_primary(config.container_config(), test_data)
        except ContainerExecError as e:
            print(f"   ❌ Write failed: {e}")
            print(f"   Output: {e.output}")
            return False

        if not result.ok:
            print(f"   ❌ Unknown write result: {result.output}")
            return False
        print(f"   ✅ Write succeeded: '{test_data}'")

        print("\n⏱️  Waiting for replication...")
        time.sleep(REPLICATION_WAIT_SECONDS)

        print("\n📖 Checking sync on the standby...")
        try:
            count_after = standby_db.count_rows()
        except psycopg2.Error as e:
            print(f"❌ Row count error: {e}")
            return False
        print(f"   Row count after: {count_after}")

        synced = count_after > count_before
        if synced:
            print("   ✅ Data replicated to the standby!")
            try:
                newest = standby_db.read_latest(1)
            except psycopg2.Error as e:
                print(f"❌ Latest row error: {e}")
            else:
                if newest:
                    row = newest[0]
                    print(f"   Latest row: ID:{row.id} | {row.data} | {row.format_time()}")
        else:
            print("   ⚠️  Data did not replicate yet")

    print("\n🎉 Read/write split test finished!")
    print(f"   Before write: {count_before} rows")
    print(f"   After write: {count_after} rows")
    print(f"   Increase: {count_after - count_before} rows")
    return synced


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Simple read/write split demo")
    parser.add_argument("--verbose", action="store_true", help="debug logging")
    args = parser.parse_args(argv)

    config.load_env_file()
    config.setup_logging(args.verbose)
    return 0 if simple_demo() else 1


if __name__ == "__main__":
    sys.exit(main())
