import psycopg2

from conftest import FakeConnection
from replcheck import connection_check
from replcheck.config import standby_config

VERSION = "PostgreSQL 16.4 (Debian 16.4-1.pgdg120+1) on x86_64-pc-linux-gnu, compiled by gcc"


def server(in_recovery, count=3):
    return FakeConnection({
        "version()": [(VERSION,)],
        "count(*)": [(count,)],
        "pg_is_in_recovery": [(in_recovery,)],
    })


def test_both_servers_ok(fake_connect, capsys):
    fake_connect(lambda kwargs: server(kwargs["port"] == 5433))

    assert connection_check.main([]) == 0

    out = capsys.readouterr().out
    assert f"✅ Connected: {VERSION[:60]}..." in out
    assert "test_replication table: 3 rows" in out
    assert "Server type: primary" in out
    assert "Server type: standby" in out
    assert "Primary: ✅ OK" in out
    assert "Standby: ✅ OK" in out


def test_standby_down(fake_connect, capsys):
    def connect(kwargs):
        if kwargs["port"] == 5433:
            return psycopg2.OperationalError("connection refused")
        return server(False)

    fake_connect(connect)

    assert connection_check.main([]) == 1

    out = capsys.readouterr().out
    assert "❌ Connection failed: connection refused" in out
    assert "Standby: ❌ NG" in out
    assert "docker compose" in out


def test_missing_table(fake_connect, capsys):
    conn = FakeConnection({
        "version()": [(VERSION,)],
        "count(*)": psycopg2.ProgrammingError('relation "test_replication" does not exist'),
    })
    fake_connect(lambda kwargs: conn)

    assert connection_check.check_server(standby_config(), "standby server") is False
    assert "❌ Table check failed" in capsys.readouterr().out
    assert conn.closed


def test_primary_down(fake_connect, capsys):
    def connect(kwargs):
        if kwargs["port"] == 5432:
            return psycopg2.OperationalError("could not connect to server")
        return server(True)

    calls = fake_connect(connect)

    assert connection_check.main([]) == 1

    out = capsys.readouterr().out
    assert "Primary: ❌ NG" in out
    assert "Standby: ✅ OK" in out
    assert "Server type: standby" in out
    assert [kwargs["port"] for kwargs, _ in calls] == [5433]
