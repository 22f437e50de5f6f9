"""HTTP middleware."""

from deva.middleware.timing import timing_middleware

__all__ = ["timing_middleware"]
