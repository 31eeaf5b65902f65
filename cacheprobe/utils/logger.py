import logging
import sys
from typing import Optional

def setup_logger(verbose: bool = False, quiet: bool = False, log_level: Optional[str] = None):
    """
    Configure the logger based on verbosity flags.
    """
    logger = logging.getLogger("cacheprobe")
    for old in list(logger.handlers):
        logger.removeHandler(old)
    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    if log_level:
        level = logging.getLevelName(log_level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {log_level}")
        logger.setLevel(level)
    elif quiet:
        logger.setLevel(logging.WARNING)
    elif verbose:
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)
    
    return logger

logger = logging.getLogger("cacheprobe")
