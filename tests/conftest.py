import subprocess

import pytest

ENV_KEYS = [
    "POSTGRES_USER", "POSTGRES_PASSWORD", "POSTGRES_DB",
    "POSTGRES_PRIMARY_HOST", "POSTGRES_PRIMARY_PORT",
    "POSTGRES_STANDBY_HOST", "POSTGRES_STANDBY_PORT",
    "POSTGRES_PRIMARY_CONTAINER", "CONTAINER_RUNTIME", "CONTAINER_EXEC_TIMEOUT",
]


def unset_env(monkeypatch, key):
    # setenv first so monkeypatch restores the original (possibly absent) value
    monkeypatch.setenv(key, "")
    monkeypatch.delenv(key)


def is_integration(request):
    return request.node.get_closest_marker("integration") is not None


@pytest.fixture(autouse=True)
def clean_env(request, monkeypatch, tmp_path):
    if is_integration(request):
        return
    for key in ENV_KEYS:
        unset_env(monkeypatch, key)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def no_sleep(request, monkeypatch):
    if is_integration(request):
        return
    monkeypatch.setattr("time.sleep", lambda seconds: None)


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn
        self.result = []

    def execute(self, sql, params=None):
        self.conn.executed.append((sql, params))
        self.result = self.conn.respond(sql)

    def fetchone(self):
        return self.result[0] if self.result else None

    def fetchall(self):
        return list(self.result)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeConnection:
    """
    responses maps an SQL substring to rows, an exception to raise,
    or a callable producing either.
    """

    def __init__(self, responses=None):
        self.responses = {"SELECT 1": [(1,)]}
        self.responses.update(responses or {})
        self.executed = []
        self.autocommit = False
        self.closed = 0

    def respond(self, sql):
        for key, value in self.responses.items():
            if key in sql:
                if callable(value):
                    value = value()
                if isinstance(value, Exception):
                    raise value
                return value
        return []

    def cursor(self):
        return FakeCursor(self)

    def close(self):
        self.closed = 1


@pytest.fixture
def fake_connect(monkeypatch):
    """Patch psycopg2.connect; returns the list of (kwargs, connection) made"""
    calls = []

    def install(factory):
        def connect(**kwargs):
            conn = factory(kwargs)
            if isinstance(conn, Exception):
                raise conn
            calls.append((kwargs, conn))
            return conn
        monkeypatch.setattr("psycopg2.connect", connect)
        return calls

    return install


@pytest.fixture
def fake_run(monkeypatch):
    """Patch subprocess.run with canned (returncode, output) results"""
    calls = []

    def install(*results):
        queue = list(results)

        def run(cmd, **kwargs):
            calls.append(cmd)
            result = queue.pop(0) if len(queue) > 1 else queue[0]
            if isinstance(result, Exception):
                raise result
            returncode, output = result
            return subprocess.CompletedProcess(cmd, returncode, stdout=output)

        monkeypatch.setattr("subprocess.run", run)
        return calls

    return install


def counter(*values):
    """Callable response yielding a count(*) row per call, last value repeats"""
    values = list(values)

    def respond():
        value = values.pop(0) if len(values) > 1 else values[0]
        return [(value,)]

    return respond
