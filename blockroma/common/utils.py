import asyncio
import logging
from contextlib import contextmanager
from dataclasses import dataclass

import time
from functools import wraps
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class Timer:
    start_at: float
    end_at: Optional[float] = None

    @property
    def seconds(self):
        if self.end_at:
            return self.end_at - self.start_at


@contextmanager
def timer():
    timer_ = Timer(start_at=time.perf_counter(), end_at=None)
    yield timer_
    timer_.end_at = time.perf_counter()


def timeit(name: Optional[str] = None, precision: int = 3):
    def _wrapper(func):

        def log_time(t):
            func_name = name or func.__name__
            logger.info(f"{func_name} has taken", extra={"seconds": round(t.seconds, precision)})

        if asyncio.iscoroutinefunction(func):
            @wraps(func)
            async def wrapper(*args, **kwargs):
                with timer() as t:
                    result = await func(*args, **kwargs)

                log_time(t)
                return result
        else:
            @wraps(func)
            def wrapper(*args, **kwargs):
                with timer() as t:
                    result = func(*args, **kwargs)

                log_time(t)
                return result

        return wrapper

    return _wrapper


def get_loop_tasks_count() -> int:
    return len(asyncio.all_tasks())
