# Langfuse integration
import functools
import inspect
from typing import Callable

from langfuse import observe

from agentstream.infrastructure.config.settings import get_settings


def tracing_enabled() -> bool:
    return get_settings().tracing_enabled


def traced(name: str) -> Callable:
    """
    Trace a coroutine or async generator as a langfuse observation.

    Checked on every call, so tracing can be switched on through settings
    without re-importing the decorated module.
    """

    def decorator(func: Callable) -> Callable:
        observed = observe(name=name)(func)

        if inspect.isasyncgenfunction(func):
            @functools.wraps(func)
            async def generator_wrapper(*args, **kwargs):
                target = observed if tracing_enabled() else func
                generator = target(*args, **kwargs)
                if inspect.isawaitable(generator):
                    generator = await generator
                try:
                    async for item in generator:
                        yield item
                finally:
                    await generator.aclose()

            return generator_wrapper

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            target = observed if tracing_enabled() else func
            return await target(*args, **kwargs)

        return wrapper

    return decorator
