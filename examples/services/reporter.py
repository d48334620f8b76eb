"""
Reporter service module.

Depends on the database by its short name and queries it once
started.
"""

import logging

from ecosystem import Module


logger = logging.getLogger(__name__)


class Lifecycle(Module):
    depends_on = ("database",)

    def __init__(self, name):
        super().__init__(name)
        self.report = None

    def start(self, next):
        database = self.dependency("database")
        self.report = {"ping": database.scalar("SELECT 1")}
        logger.info(f"Reporter ready: {self.report}")
        next()
