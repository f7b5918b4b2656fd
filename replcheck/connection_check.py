"""
Connection check for the primary/standby pair.
Run this FIRST to make sure both servers answer before the demos.
"""

import argparse
import sys

import psycopg2

from replcheck import config
from replcheck.database import Database


def check_server(db_config, description: str) -> bool:
    """Connect, print version, row count and server role"""
    print(f"🔗 Testing connection to {description}...")
    print(f"   Host: {db_config.describe()}")

    try:
        db = Database.connect(db_config)
    except psycopg2.Error as e:
        print(f"   ❌ Connection failed: {e}")
        return False

    with db:
        try:
            version = db.server_version()
            print(f"   ✅ Connected: {version[:60]}...")
        except psycopg2.Error as e:
            print(f"   ❌ Version query failed: {e}")
            return False

        try:
            count = db.count_rows()
            print(f"   📊 test_replication table: {count} rows")
        except psycopg2.Error as e:
            print(f"   ❌ Table check failed: {e}")
            return False

        try:
            in_recovery = db.is_in_recovery()
        except psycopg2.Error as e:
            print(f"   ❌ Server type check failed: {e}")
            return False

    server_type = "standby" if in_recovery else "primary"
    print(f"   🏷️  Server type: {server_type}")
    return True


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Check primary/standby connectivity")
    parser.add_argument("--verbose", action="store_true", help="debug logging")
    args = parser.parse_args(argv)

    config.load_env_file()
    config.setup_logging(args.verbose)

    print("🎯 PostgreSQL connection check")
    print("=" * 50)

    primary_ok = check_server(config.primary_config(), "primary server")
    print()
    standby_ok = check_server(config.standby_config(), "standby server")
    print()

    print("📋 Summary:")
    print(f"   Primary: {'✅ OK' if primary_ok else '❌ NG'}")
    print(f"   Standby: {'✅ OK' if standby_ok else '❌ NG'}")

    if primary_ok and standby_ok:
        print("\n🎉 All connection checks passed!")
        print("   The demo scripts are ready to run.")
        return 0

    print("\n⚠️  There is a connection problem.")
    print("   Check the state of the docker compose containers.")
    return 1


if __name__ == "__main__":
    sys.exit(main())
