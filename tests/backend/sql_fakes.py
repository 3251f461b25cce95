"""In-memory DB-API style cursor and connection pool shared by the SQL store tests."""
import threading
from contextlib import contextmanager


class FakeDatabase:
    def __init__(self):
        self.rows = {}
        self.statements = []
        self.lock = threading.Lock()


class FakeCursor:
    def __init__(self, db):
        self.db = db
        self._row = None

    def execute(self, sql, params=()):
        with self.db.lock:
            self.db.statements.append(sql)
            verb = sql.split(None, 1)[0].upper()
            if verb in ("INSERT", "UPSERT"):
                key, value = params
                self.db.rows[key] = bytes(value)
            elif verb == "SELECT":
                value = self.db.rows.get(params[0])
                self._row = None if value is None else (value,)
            elif verb == "DELETE":
                self.db.rows.pop(params[0], None)

    def fetchone(self):
        return self._row

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class FakeConnection:
    def __init__(self, db):
        self.db = db

    def cursor(self):
        return FakeCursor(self.db)


class FakePool:
    """Stands in for psycopg_pool.ConnectionPool."""

    instances = []
    fail_on_create = False

    def __init__(self, conninfo, **kwargs):
        self.conninfo = conninfo
        self.kwargs = kwargs
        self.db = FakeDatabase()
        self.closed = False
        FakePool.instances.append(self)

    @contextmanager
    def connection(self):
        if FakePool.fail_on_create:
            raise ConnectionError("could not connect to server")
        yield FakeConnection(self.db)

    def close(self):
        self.closed = True
