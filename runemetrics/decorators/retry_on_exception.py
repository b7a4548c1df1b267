import asyncio
import functools
import logging
from typing import Tuple, Type

logger = logging.getLogger(__name__)


def retry_on_exception(
    retries: int = 3,
    exceptions: Tuple[Type[BaseException], ...] = (Exception,),
    initial_delay: float = 1,
    max_delay: float = 30,
):
    """Retries an async function on the given exceptions with doubling delay.

    The last failure is re-raised once all attempts are used up.
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            sleep_time = initial_delay
            for attempt in range(retries):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if attempt >= retries - 1:
                        logger.error(
                            f"{func.__name__} failed after {retries} attempt(s): {e}"
                        )
                        raise

                    logger.warning(
                        f"Fail #{attempt + 1} for {func.__name__}, "
                        f"retrying after {sleep_time}s sleep..."
                    )
                    await asyncio.sleep(sleep_time)
                    sleep_time = min(sleep_time * 2, max_delay)

        return wrapper

    return decorator
