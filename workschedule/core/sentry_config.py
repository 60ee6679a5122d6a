# workschedule/core/sentry_config.py
"""
Sentry configuration for error tracking in production.

Store and import failures are logged at ERROR level; the logging
integration forwards those as Sentry events.
"""

import logging
import os

from workschedule import __version__

logger = logging.getLogger(__name__)


def init_sentry() -> bool:
    """
    Initialize Sentry error tracking.

    Returns:
        True if Sentry was initialized successfully, False otherwise.
    """
    is_production = os.getenv("PRODUCTION", "false").lower() == "true"
    sentry_dsn = os.getenv("SENTRY_DSN", "").strip()

    if not is_production:
        logger.info("Sentry disabled in development mode")
        return False

    if not sentry_dsn:
        logger.warning(
            "SENTRY_DSN not set. Error tracking disabled. "
            "Set SENTRY_DSN environment variable to enable Sentry in production."
        )
        return False

    try:
        import sentry_sdk
        from sentry_sdk.integrations.logging import LoggingIntegration

        logging_integration = LoggingIntegration(
            level=logging.INFO,  # Breadcrumbs from INFO and above
            event_level=logging.ERROR,  # Send errors and above as events
        )

        sentry_sdk.init(
            dsn=sentry_dsn,
            integrations=[logging_integration],
            sample_rate=1.0,
            release=os.getenv("RELEASE_VERSION", f"workschedule@{__version__}"),
            environment=os.getenv("SENTRY_ENVIRONMENT", "production"),
            send_default_pii=False,
            attach_stacktrace=True,
            before_send=before_send_hook,
        )

        env = os.getenv("SENTRY_ENVIRONMENT", "production")
        logger.info("Sentry initialized successfully (environment: %s)", env)
        return True

    except ImportError:
        logger.warning("Sentry SDK not installed. Install with: pip install sentry-sdk")
        return False
    except Exception as e:
        logger.error("Failed to initialize Sentry: %s", e, exc_info=True)
        return False


def before_send_hook(event, hint):
    """
    Drop local file paths from events.

    Backup and export paths can contain the user's home directory.

    Args:
        event: Sentry event data
        hint: Additional context

    Returns:
        Modified event
    """
    extra = event.get("extra")
    if extra:
        for key in ("path", "backup_path", "log_dir"):
            if key in extra:
                extra[key] = "[Filtered]"
    return event
