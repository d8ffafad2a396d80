"""API Middleware Package"""

from .error_handler import setup_error_handlers, status_code_for

__all__ = [
    "setup_error_handlers",
    "status_code_for",
]
