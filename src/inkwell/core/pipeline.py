"""Per-route request pipeline.

Cross-cutting stages that only some routes need (content-type validation,
authentication, per-identity rate limiting, role checks) are expressed as
small interceptor objects and attached to an endpoint with :func:`intercept`::

    @router.post("/", status_code=201)
    @intercept(ContentTypeGuard(), Authenticate(), UserRateLimit(STRICT))
    async def create_blog(...): ...

Routes built with :class:`InterceptedRoute` run those interceptors around the
FastAPI handler, before the request body is parsed. Every interceptor either
calls ``call_next`` or returns a terminal response. Interceptors are ordered
by their ``stage`` so the relative order is fixed no matter how a route lists
them.

The per-request :class:`RequestContext` lives on ``request.state`` and is
discarded with the request.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Protocol, Sequence

from fastapi import Request, Response
from fastapi.routing import APIRoute

__all__ = [
    "CallNext",
    "Interceptor",
    "RequestContext",
    "get_request_context",
    "Pipeline",
    "intercept",
    "InterceptedRoute",
]

CallNext = Callable[[Request], Awaitable[Response]]

INTERCEPTORS_ATTR = "__inkwell_interceptors__"


class Interceptor(Protocol):
    stage: int

    async def __call__(self, request: Request, call_next: CallNext) -> Response: ...


@dataclass
class RequestContext:
    user: Optional[Any] = None
    session: Optional[Any] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None


def get_request_context(request: Request) -> RequestContext:
    context = getattr(request.state, "context", None)
    if context is None:
        context = RequestContext()
        request.state.context = context
    return context


class Pipeline:
    """Composes interceptors around a final handler."""

    def __init__(self, interceptors: Sequence[Interceptor]):
        self.interceptors = tuple(sorted(interceptors, key=lambda i: getattr(i, "stage", 0)))

    async def __call__(self, request: Request, handler: CallNext) -> Response:
        async def dispatch(index: int, request: Request) -> Response:
            if index == len(self.interceptors):
                return await handler(request)
            interceptor = self.interceptors[index]
            return await interceptor(request, lambda req: dispatch(index + 1, req))

        return await dispatch(0, request)


def intercept(*interceptors: Interceptor) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Attach interceptors to an endpoint. Must sit below the router decorator."""

    def decorator(endpoint: Callable[..., Any]) -> Callable[..., Any]:
        existing = getattr(endpoint, INTERCEPTORS_ATTR, ())
        setattr(endpoint, INTERCEPTORS_ATTR, (*existing, *interceptors))
        return endpoint

    return decorator


class InterceptedRoute(APIRoute):
    def get_route_handler(self) -> Callable[[Request], Awaitable[Response]]:
        handler = super().get_route_handler()
        interceptors = getattr(self.endpoint, INTERCEPTORS_ATTR, ())
        if not interceptors:
            return handler

        pipeline = Pipeline(interceptors)

        async def intercepted_handler(request: Request) -> Response:
            return await pipeline(request, handler)

        return intercepted_handler
