"""
Main entry point for the Firefly AI categorizer.

This module loads configuration, builds the job pipeline
and starts the FastAPI server.
"""
import sys
from pathlib import Path

# Add project root to Python path for module imports
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from dotenv import load_dotenv
from pydantic import ValidationError as SettingsValidationError

from core.config import get_settings
from core.exceptions import ConfigurationError
from core.logger import set_log_level, setup_logger

# Load environment variables from .env file
_env_file = PROJECT_ROOT / ".env"
if _env_file.exists():
    load_dotenv(_env_file)
else:
    print("Warning: .env file not found. Using environment variables or defaults.")

logger = setup_logger(__name__)


def load_settings():
    """Load settings, reporting missing or invalid values as a ConfigurationError."""
    try:
        return get_settings()
    except SettingsValidationError as e:
        fields = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
        raise ConfigurationError("Invalid or missing configuration", details={"fields": fields})


def main():
    """Main application entry point."""
    try:
        settings = load_settings()
        set_log_level(settings.log_level)

        import uvicorn
        from app.api import create_app

        logger.info(f"Starting {settings.app_name}")
        logger.info(f"Firefly URL: {settings.firefly_url}")
        logger.info(f"OpenAI Model: {settings.openai_model} ({settings.openai_base_url})")
        logger.info(f"Log Level: {settings.log_level}")
        logger.info(f"Job Timeout: {settings.job_timeout_seconds:g}s")
        logger.info(
            f"Cleanup: every {settings.cleanup_interval_seconds:g}s, "
            f"retention {settings.job_retention_seconds:g}s"
        )
        logger.info(f"UI enabled: {settings.enable_ui}")

        app = create_app()

        logger.info(f"Application running on {settings.host}:{settings.port}")

        uvicorn.run(
            app,
            host=settings.host,
            port=settings.port,
            log_level=settings.log_level.lower()
        )

    except ConfigurationError as e:
        logger.error(f"Configuration error: {e.message}")
        if e.details:
            logger.error(f"Details: {e.details}")
        sys.exit(1)

    except Exception as e:
        logger.error(f"Failed to start application: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
