"""Request-scoped loggers and request timing middleware."""

import gc
import sys
import time
import tracemalloc

from aiohttp import web

from cloudshell.logs import FieldLogger, with_fields

try:
    import resource
except ImportError:  # not available on every platform
    resource = None


def request_fields(request):
    """Return the fields describing an incoming request."""
    return {
        "host": request.host,
        "remote_addr": request.remote,
        "method": request.method,
        "protocol": f"HTTP/{request.version.major}.{request.version.minor}",
        "path": request.path,
        "request_url": str(request.url),
        "user_agent": request.headers.get("User-Agent", ""),
        "cookies": dict(request.cookies),
    }


def create_request_log(request=None, fields=None):
    """Return a logger carrying the given fields plus those of the request."""
    combined = dict(fields or {})
    if request is not None:
        combined.update(request_fields(request))
    return with_fields(combined)


def create_memory_log():
    """Return a logger carrying the interpreter's memory statistics."""
    traced, peak = tracemalloc.get_traced_memory() if tracemalloc.is_tracing() else (0, 0)
    max_rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss if resource else 0
    return FieldLogger(
        {
            "alloc": traced,
            "heap_alloc": sys.getallocatedblocks(),
            "total_alloc": peak,
            "sys_alloc": max_rss,
            "gc_count": sum(stats["collections"] for stats in gc.get_stats()),
        }
    )


@web.middleware
async def request_logging_middleware(request, handler):
    """Log each request's duration, or that it failed."""
    started = time.perf_counter()
    try:
        response = await handler(request)
    except web.HTTPException:
        _log_completion(request, started)
        raise
    except Exception:
        create_request_log(request).info("request errored out")
        raise
    _log_completion(request, started)
    return response


def _log_completion(request, started):
    elapsed_ms = (time.perf_counter() - started) * 1000
    create_request_log(request).info("request completed in %sms", elapsed_ms)