"""
API Dependencies package.

Cross-cutting concerns like authentication.
"""

from .auth import check_api_key, is_authorized, verify_api_key

__all__ = ["check_api_key", "is_authorized", "verify_api_key"]
