"""
Primary access through the container runtime.
Writes and primary-side status queries shell out to psql inside the
primary container (`docker exec postgres-primary psql ...`) and parse its
unaligned, `|`-separated output.
"""

import logging
import re
import subprocess
from dataclasses import dataclass
from typing import List, Optional

from replcheck.config import ContainerConfig

logger = logging.getLogger(__name__)

FIELD_SEPARATOR = "|"

# psql command tags and row-count footers, not data
_STATUS_LINE = re.compile(r"^(INSERT \d+ \d+|(UPDATE|DELETE|SELECT|COPY) \d+|\(\d+ rows?\))$")

REPLICATION_STATUS_SQL = (
    "SELECT client_addr, state, sent_lsn, write_lsn, flush_lsn, replay_lsn, "
    "COALESCE(EXTRACT(EPOCH FROM replay_lag), 0) AS lag_seconds "
    "FROM pg_stat_replication;"
)


class ContainerExecError(Exception):
    def __init__(self, message, output=""):
        super().__init__(message)
        self.output = output


@dataclass
class WriteResult:
    ok: bool
    row_id: Optional[int]
    output: str


@dataclass
class ReplicationStatus:
    client_addr: str
    state: str
    sent_lsn: str
    write_lsn: str
    flush_lsn: str
    replay_lsn: str
    lag_seconds: float


def quote_literal(text: str) -> str:
    return "'" + text.replace("'", "''") + "'"


def psql_command(config: ContainerConfig, sql: str, tuples_only: bool = True) -> List[str]:
    cmd = [
        config.runtime, "exec", config.container,
        "psql", "-U", config.user, "-d", config.database,
        "-X", "-A", "-F", FIELD_SEPARATOR,
    ]
    if tuples_only:
        cmd.append("-t")
    cmd += ["-c", sql]
    return cmd


def run_sql(config: ContainerConfig, sql: str, tuples_only: bool = True) -> str:
    """Run one statement in the primary container, return combined output"""
    cmd = psql_command(config, sql, tuples_only)
    logger.debug(f"Running: {' '.join(cmd)}")
    try:
        result = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            timeout=config.timeout,
        )
    except FileNotFoundError as e:
        raise ContainerExecError(f"{config.runtime} not found: {e}") from e
    except subprocess.TimeoutExpired as e:
        partial = e.output or ""
        if isinstance(partial, bytes):
            partial = partial.decode(errors="replace")
        raise ContainerExecError(
            f"{config.runtime} exec timed out after {config.timeout}s",
            output=partial,
        ) from e

    output = result.stdout or ""
    if result.returncode != 0:
        raise ContainerExecError(
            f"{config.runtime} exec exited with status {result.returncode}",
            output=output,
        )
    return output


def parse_rows(output: str, has_header: bool = False) -> List[List[str]]:
    """Data rows of unaligned psql output; has_header for runs without -t"""
    rows = []
    for line in output.strip().splitlines():
        line = line.strip()
        if not line or _STATUS_LINE.match(line):
            continue
        if has_header:
            has_header = False
            continue
        rows.append([field.strip() for field in line.split(FIELD_SEPARATOR)])
    return rows


def write_to_primary(config: ContainerConfig, text: str) -> WriteResult:
    """Insert one row on the primary; ContainerExecError on exec failure"""
    sql = (
        f"INSERT INTO test_replication (data) VALUES ({quote_literal(text)}) "
        "RETURNING id, created_at;"
    )
    output = run_sql(config, sql)
    if "INSERT 0 1" not in output:
        logger.debug(f"No INSERT tag in output: {output!r}")
        return WriteResult(ok=False, row_id=None, output=output)

    row_id = None
    for row in parse_rows(output):
        try:
            row_id = int(row[0])
            break
        except ValueError:
            continue
    return WriteResult(ok=True, row_id=row_id, output=output)


def replication_status(config: ContainerConfig) -> Optional[ReplicationStatus]:
    """First streaming standby as seen by the primary, or None"""
    output = run_sql(config, REPLICATION_STATUS_SQL)
    for row in parse_rows(output):
        if len(row) < 7 or row[1] != "streaming":
            continue
        try:
            lag = float(row[6]) if row[6] else 0.0
        except ValueError:
            logger.debug(f"Unparseable lag value {row[6]!r}, using 0")
            lag = 0.0
        return ReplicationStatus(*row[:6], lag_seconds=lag)
    return None


def primary_version(config: ContainerConfig) -> str:
    rows = parse_rows(run_sql(config, "SELECT version();"))
    return rows[0][0] if rows else ""
