import functools
import logging
import time

from datavista.core.exceptions import AppError

logger = logging.getLogger(__name__)


def log_execution_time(func):
    """Log how long a domain operation took.

    Expected client errors are logged as warnings without a traceback;
    anything else is logged as an error before being re-raised.
    """
    @functools.wraps(func)
    async def async_wrapper(*args, **kwargs):
        start_time = time.time()
        try:
            result = await func(*args, **kwargs)
            elapsed = time.time() - start_time
            logger.info(f"{func.__qualname__} took {elapsed:.4f}s")
            return result
        except AppError as e:
            elapsed = time.time() - start_time
            logger.warning(f"{func.__qualname__} rejected after {elapsed:.4f}s: {e.code} {e.message}")
            raise
        except Exception as e:
            elapsed = time.time() - start_time
            logger.error(f"{func.__qualname__} failed after {elapsed:.4f}s: {str(e)}")
            raise

    return async_wrapper
