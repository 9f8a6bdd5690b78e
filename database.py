import sqlite3
from contextlib import contextmanager
from database_schemas import TABLE_SCHEMAS, INDEX_SCHEMAS

from config import DB_PATH

@contextmanager
def get_db(path: str = DB_PATH):
    # Autocommit; multi-statement writes go through transaction()
    conn = sqlite3.connect(path, isolation_level=None, timeout=30)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()

@contextmanager
def transaction(conn: sqlite3.Connection):
    """Take the write lock up front so read-modify-write sequences are atomic"""
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except Exception:
        conn.execute("ROLLBACK")
        raise
    conn.execute("COMMIT")

def init_db(path: str = DB_PATH):
    with get_db(path) as conn:
        cursor = conn.cursor()
        for schema in TABLE_SCHEMAS:
            cursor.execute(schema)
        for index in INDEX_SCHEMAS:
            cursor.execute(index)

if __name__ == "__main__":
    init_db()
