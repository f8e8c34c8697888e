from typing import Protocol

from fastapi import Request

import errors


class Authorizer(Protocol):
    def authorize(self, request: Request) -> bool:
        ...


class AllowAll:
    """Lets every request through."""

    def authorize(self, request: Request) -> bool:
        return True


def authorize(request: Request) -> None:
    """Dependency for protected routes; uses the authorizer on ``app.state``."""
    authorizer = getattr(request.app.state, "authorizer", None) or AllowAll()
    if not authorizer.authorize(request):
        raise errors.ForbiddenError()
