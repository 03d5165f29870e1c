import logging
import os

from sqlalchemy import delete, inspect, select
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError

from markblog.errors import NotFoundError, StoreError
from markblog.models import Record

logger = logging.getLogger(__name__)

SCAN_BATCH_SIZE = 100


class KVStore:
    """Ordered get/put/delete/scan access to the ``records`` table."""

    def __init__(self, db):
        self.db = db

    # ===== Lifecycle =====
    def open(self, app):
        """Create the data directory and table if they don't exist yet."""
        database = make_url(app.config["SQLALCHEMY_DATABASE_URI"]).database
        if database and database != ":memory:":
            os.makedirs(os.path.dirname(os.path.abspath(database)), exist_ok=True)

        with app.app_context():
            try:
                created = not inspect(self.db.engine).has_table(Record.__tablename__)
                self.db.create_all()
            except SQLAlchemyError as exc:
                raise StoreError(f"Could not open store: {exc}", operation="open") from exc
        if created:
            logger.info("Initialised content database")

    def close(self, app):
        with app.app_context():
            self.db.session.remove()
            self.db.engine.dispose()

    # ===== Point operations =====
    def get(self, key: str) -> dict:
        try:
            record = self.db.session.get(Record, key)
        except SQLAlchemyError as exc:
            raise StoreError(f"Could not read {key}: {exc}", operation="get", key=key) from exc
        if record is None:
            raise NotFoundError(key)
        return record.value

    def contains(self, key: str) -> bool:
        try:
            return self.db.session.get(Record, key) is not None
        except SQLAlchemyError as exc:
            raise StoreError(f"Could not read {key}: {exc}", operation="get", key=key) from exc

    def put(self, key: str, value: dict):
        try:
            self.db.session.merge(Record(key=key, value=value))
            self.db.session.commit()
        except SQLAlchemyError as exc:
            self.db.session.rollback()
            raise StoreError(f"Could not write {key}: {exc}", operation="put", key=key) from exc

    def delete(self, key: str):
        try:
            record = self.db.session.get(Record, key)
            if record is None:
                raise NotFoundError(key, operation="delete")
            self.db.session.delete(record)
            self.db.session.commit()
        except SQLAlchemyError as exc:
            self.db.session.rollback()
            raise StoreError(f"Could not delete {key}: {exc}", operation="delete", key=key) from exc

    # ===== Scans =====
    def items(self, reverse: bool = False):
        """Yield ``(key, value)`` pairs in key order.

        The iterator is lazy and one-shot. The scan is a single SELECT, so it
        sees one consistent view of the table even while other writers commit.
        """
        order = Record.key.desc() if reverse else Record.key.asc()
        query = select(Record).order_by(order).execution_options(yield_per=SCAN_BATCH_SIZE)
        try:
            for record in self.db.session.execute(query).scalars():
                yield record.key, record.value
        except SQLAlchemyError as exc:
            raise StoreError(f"Scan failed: {exc}", operation="scan") from exc

    def keys(self, reverse: bool = False):
        for key, _ in self.items(reverse=reverse):
            yield key

    def clear(self) -> int:
        """Delete the whole key space. Returns how many records were removed."""
        try:
            keys = list(self.keys())
            for key in keys:
                self.db.session.execute(delete(Record).where(Record.key == key))
            self.db.session.commit()
        except SQLAlchemyError as exc:
            self.db.session.rollback()
            raise StoreError(f"Could not clear store: {exc}", operation="clear") from exc
        return len(keys)
