"""Shared API dependencies for the verification endpoints."""

from typing import Annotated

from fastapi import Depends, Request

from role_gate.context import VerificationContext
from role_gate.services.errors import NotReadyError


def get_context(request: Request) -> VerificationContext:
    """Return the verification context attached to the running application.

    Args:
        request: Incoming request

    Returns:
        The process-wide VerificationContext
    """
    context: VerificationContext = request.app.state.context
    return context


ContextDep = Annotated[VerificationContext, Depends(get_context)]


def require_ready(context: ContextDep) -> VerificationContext:
    """Block workflow endpoints while the Discord bot is not connected.

    Raises:
        NotReadyError: If the collaborator is connecting or disconnected
    """
    if not context.readiness.is_ready:
        raise NotReadyError()
    return context


ReadyContextDep = Annotated[VerificationContext, Depends(require_ready)]
