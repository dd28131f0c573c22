import os
from typing import Optional

from dotenv import load_dotenv

DEFAULT_DB_PATH = "podcasts.db"
DEFAULT_PODCAST_PATH = "podcasts/"
DEFAULT_LOG_LEVEL = "WARNING"


class Config:
    def __init__(
        self,
        env_file: Optional[str] = None,
        db_path: Optional[str] = None,
        podcast_path: Optional[str] = None,
        log_level: Optional[str] = None,
    ):
        """
        Load settings from the environment, an optional .env file and
        explicit overrides, in increasing order of precedence.

        Parameters:
            env_file: Path to a .env file. When omitted, the default .env
                discovery is used.
            db_path: Overrides PODINATOR_DB_PATH.
            podcast_path: Overrides PODINATOR_PODCAST_PATH.
            log_level: Overrides PODINATOR_LOG_LEVEL.
        """
        if env_file:
            if not os.path.exists(env_file):
                raise FileNotFoundError(f"Config file not found: {env_file}")
            load_dotenv(env_file)
        else:
            load_dotenv()

        # Store file holding all podcasts and episodes
        self.DB_PATH = db_path or os.getenv(
            "PODINATOR_DB_PATH", DEFAULT_DB_PATH
        )

        # Root directory for downloaded episodes, one subdirectory per podcast
        self.PODCAST_PATH = podcast_path or os.getenv(
            "PODINATOR_PODCAST_PATH", DEFAULT_PODCAST_PATH
        )

        self.LOG_LEVEL = (
            log_level or os.getenv("PODINATOR_LOG_LEVEL", DEFAULT_LOG_LEVEL)
        ).upper()
