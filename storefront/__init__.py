"""
storefront — session lifecycle and checkout orchestration for a retail storefront client.

    from storefront import Storefront, StorefrontConfig
    from storefront import session as S   # Authentication lifecycle
    from storefront import checkout as C  # Checkout wizard
    from storefront import guard as Gd    # Route-access decisions
    from storefront import store as St    # Key/value persistence
    from storefront import transport as T # REST backend
"""

from storefront import store
from storefront import session
from storefront import checkout
from storefront import guard
from storefront import transport
from storefront._app import Storefront
from storefront._config import StorefrontConfig
from storefront._errors import ErrorKind, StorefrontError, Errors
from storefront._types import (
    Allow,
    Redirect,
    Decision,
    Millis,
    Clock,
    system_clock,
)

__version__ = "0.1.0"

__all__ = (
    "store",
    "session",
    "checkout",
    "guard",
    "transport",
    "Storefront",
    "StorefrontConfig",
    "ErrorKind",
    "StorefrontError",
    "Errors",
    "Allow",
    "Redirect",
    "Decision",
    "Millis",
    "Clock",
    "system_clock",
)
