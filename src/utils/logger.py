import os
import sys

from loguru import logger

from config.settings import settings

# Records that move value out of a pool; kept in a separate long-lived sink.
AUDIT_TAGS = ("[MIGRATION]", "[CLAIM]")


def is_audit_record(record: dict) -> bool:
    return record["message"].startswith(AUDIT_TAGS)


def setup_logger(
    *,
    json_logs: bool = False,
    level: str = "INFO",
    log_file: str | None = None,
    audit_file: str | None = None,
) -> None:
    """Configure loguru for the engine.

    Console level controlled by LOG_LEVEL env (default: INFO).
    The engine log captures DEBUG so swap-by-swap settlement can be replayed;
    migration and claim records also go to the audit log.
    """
    console_level = os.getenv("LOG_LEVEL", level).upper()
    logger.remove()

    if json_logs:
        logger.add(sys.stdout, serialize=True, level=console_level)
    else:
        logger.add(
            sys.stdout,
            format=(
                "<green>{time:HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
                "<level>{message}</level>"
            ),
            level=console_level,
            colorize=True,
        )

    logger.add(
        log_file or settings.log_file,
        rotation="50 MB",
        retention="3 days",
        compression="gz",
        level="DEBUG",
        serialize=json_logs,
    )
    logger.add(
        audit_file or settings.audit_log_file,
        rotation="10 MB",
        retention="90 days",
        level="INFO",
        filter=is_audit_record,
        serialize=True,
    )
