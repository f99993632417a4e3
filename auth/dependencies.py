"""
auth/dependencies.py -- FastAPI Depends() helper that runs the access gate.

Routes behind the gate declare `grant: Grant = Depends(authorize_request)`.
FastAPI resolves dependencies before calling the handler, so a rejection
raised here ends the request and the handler (and with it the resource API or
upload store) is never invoked.

Layer rule: auth/dependencies.py may import from fastapi because it is part
of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.gate import AccessGate, Grant


def authorize_request(request: Request) -> Grant:
    """Apply the configured AccessGate to the incoming request.

    Use as a FastAPI dependency:
        @router.post("/items")
        def route(grant: Grant = Depends(authorize_request)): ...
    """
    gate: AccessGate = request.app.state.gate
    grant = gate.authorize(request.method, request.headers.get("Authorization"))
    request.state.user_id = grant.user_id
    return grant
