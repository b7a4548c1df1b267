import enum
import logging
import os
import sys

from apscheduler.triggers.cron import CronTrigger
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

VERSION_FILE = os.path.join(os.path.dirname(os.path.dirname(__file__)), "VERSION")


class ENVIRONMENT(enum.StrEnum):
    DEVELOPMENT = "dev"
    STAGING = "staging"
    PRODUCTION = "prod"


class Config:
    def __init__(self):
        load_dotenv()

        self.VERSION: str = self.get_version()
        self.ENVIRONMENT: ENVIRONMENT = ENVIRONMENT(os.getenv("ENVIRONMENT", "prod"))
        self.PLAYER_NAME: str = os.getenv("PLAYER_NAME", "")
        self.UPDATE_CRON: str = os.getenv("UPDATE_CRON", "* * * * *")
        self.MARKER_TIME: int = int(os.getenv("MARKER_TIME") or 30)
        self.ACTIVITIES: int = int(os.getenv("ACTIVITIES") or 20)
        self.PAGE_SIZE: int = int(os.getenv("PAGE_SIZE") or 20)
        self.CACHE_DIR: str = os.getenv("CACHE_DIR", "")

        self.validate_config()

    def validate_config(self):
        for key, value in vars(self).items():
            if isinstance(value, bool):
                continue
            if isinstance(value, int) and value <= 0:
                raise ValueError(f"Configuration key '{key}' (int) must be positive")

        try:
            CronTrigger.from_crontab(self.UPDATE_CRON)
        except ValueError as e:
            raise ValueError(
                f"Configuration key 'UPDATE_CRON' is not a crontab expression: "
                f"'{self.UPDATE_CRON}' ({e})"
            )

    def get_version(self) -> str:
        try:
            with open(VERSION_FILE, "r") as file:
                return file.read().strip()
        except FileNotFoundError:
            return "dev"


try:
    CONFIG = Config()
    logger.info("Loaded local configuration successfully")
except Exception as e:
    logger.critical(e)
    sys.exit(1)
