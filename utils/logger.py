"""Logging setup for the application."""

import logging
import sys


def setup_logger(log_level: str = "INFO", name: str = "hot_potato") -> logging.Logger:
    """
    Set up and configure application logger.
    
    Configures the root handler with a simple, readable format suitable for
    both the API server and the CLI. Only entry points call this; other
    modules use ``logging.getLogger(__name__)`` and inherit the root level.
    
    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        name: Logger name (default: hot_potato)
        
    Returns:
        logging.Logger: Configured logger instance
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    
    logging.basicConfig(
        level=numeric_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        stream=sys.stdout,
        force=True,  # Override any existing configuration
    )
    
    logger = logging.getLogger(name)
    logger.setLevel(numeric_level)
    
    return logger
