"""
Run the transaction tagger web service.

    python main.py

Settings come from the environment and an optional .env file next to this script.
"""
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError as PydanticValidationError

from core.config import Settings, get_settings
from core.exceptions import ConfigurationError
from core.logger import setup_logger

ENV_FILE = Path(__file__).parent / ".env"

logger = setup_logger(__name__)


def load_environment(env_file: Path = ENV_FILE) -> Settings:
    """Apply .env (real environment variables win) and build the settings."""
    if env_file.exists():
        load_dotenv(env_file)
    try:
        return get_settings()
    except PydanticValidationError as e:
        raise ConfigurationError("Invalid settings", details={"errors": e.errors()})


def serve(settings: Settings) -> None:
    import uvicorn
    from app.api import app

    logger.info(f"Starting {settings.app_name} on {settings.host}:{settings.port} (model: {settings.openai_model})")
    if not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY not set: every category suggestion will be a random pick")

    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


def main() -> int:
    try:
        serve(load_environment())
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e.message} {e.details or ''}".rstrip())
        return 1
    except Exception as e:
        logger.error(f"Server stopped unexpectedly: {e}", exc_info=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
