"""
Core infrastructure components for the application.

This package contains the event bus, access-check delegation, response
shaping, the database pool and the repository base class. Modules that read
settings (database, lifespan, logging_config) are imported from their own
module paths, since main_config itself imports from this package.
"""

from .access import AccessDecision, AllowAllAuthorizer, Authorizer, IntercomAuthorizer
from .intercom import Intercom
from .responder import Responder

__all__ = [
    "AccessDecision",
    "AllowAllAuthorizer",
    "Authorizer",
    "Intercom",
    "IntercomAuthorizer",
    "Responder",
]
