"""
PostgreSQL primary/standby replication check tools.
Writes go to the primary through `docker exec ... psql`, reads come
straight from the standby over psycopg2.
"""

__version__ = "0.1.0"
