"""
Database service module.

Creates a SQLAlchemy engine on init, opens a connection on start
and releases both on stop. Reads ``config["database"]["url"]``.
"""

import logging

from sqlalchemy import create_engine, text

from ecosystem import Module


logger = logging.getLogger(__name__)


class Lifecycle(Module):
    def __init__(self, name):
        super().__init__(name)
        self.engine = None
        self.connection = None

    def init(self, config, registry, next):
        url = config.get("database", {}).get("url", "sqlite://")
        self.engine = create_engine(url, future=True)
        logger.info(f"Database engine created for: {url.split('@')[-1]}")
        next()

    def start(self, next):
        self.connection = self.engine.connect()
        self.connection.execute(text("SELECT 1"))
        next()

    def stop(self, next):
        if self.connection is not None:
            self.connection.close()
            self.connection = None
        if self.engine is not None:
            self.engine.dispose()
        next()

    def scalar(self, sql: str):
        """Run a query on the open connection and return its first column."""
        return self.connection.execute(text(sql)).scalar()
