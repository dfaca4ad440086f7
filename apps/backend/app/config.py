import os

import psycopg2

from app.db_config import db_config, get_db_connection


def is_dev_mode() -> bool:
    return os.getenv("DYPSE_ENV", "").lower() == "dev"


class Capabilities:
    @staticmethod
    def is_db_enabled() -> bool:
        """Check if DATABASE_URL is configured"""
        return db_config.is_db_enabled

    @staticmethod
    def check_db_connection() -> bool:
        """Verify database connection with a trivial query"""
        if not Capabilities.is_db_enabled():
            return False

        try:
            conn = get_db_connection()
        except (psycopg2.Error, RuntimeError):
            return False

        try:
            cursor = conn.cursor()
            cursor.execute("SELECT 1")
            cursor.fetchone()
            cursor.close()
            return True
        except psycopg2.Error:
            return False
        finally:
            conn.close()

    @staticmethod
    def is_scheduler_enabled() -> bool:
        return os.getenv("DYPSE_DISABLE_SCHEDULER", "false").lower() != "true"

    @classmethod
    def get_status(cls) -> dict:
        db = cls.check_db_connection()
        scheduler = cls.is_scheduler_enabled()

        return {
            "status": "green" if db and scheduler else "amber",
            "components": {
                "db": db,
                "scheduler": scheduler,
            },
        }
