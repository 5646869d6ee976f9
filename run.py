import logging

import config
from utils.config_validator import validate_or_exit
from utils.logging_config import setup_logging

# Initialize centralized logging configuration
setup_logging()
validate_or_exit(config)

from app import main

# Aggressively silence SQL loggers
# Must be done AFTER app import as SQLAlchemy configures its loggers on engine creation
for logger_name in ['aiosqlite', 'sqlalchemy', 'sqlalchemy.engine', 'sqlalchemy.pool', 'sqlalchemy.orm']:
    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.CRITICAL)  # Only CRITICAL and above (basically nothing)
    logger.propagate = False  # Don't propagate to root logger
    # Remove all existing handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    # Add NullHandler to prevent "No handler" warnings
    logger.addHandler(logging.NullHandler())

logging.info("🔇 SQL loggers silenced (aiosqlite, sqlalchemy.*)")

if __name__ == '__main__':
    logging.info("🔧 [run.py] Starting storefront API")
    main()
