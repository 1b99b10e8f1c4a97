import logging

from .database import Database


class SQLiteHandler(logging.Handler):
    """
    A logging handler that writes log records into the quiz database.
    """

    def __init__(self, db: Database):
        super().__init__()
        self.db = db

    def emit(self, record):
        try:
            conn = self.db.connect()
            try:
                conn.execute(
                    "INSERT INTO logs (level, message) VALUES (?, ?)",
                    (record.levelname, self.format(record)),
                )
            finally:
                conn.close()
        except Exception:
            self.handleError(record)
