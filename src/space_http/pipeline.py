"""Ordered, named request pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Tuple

import httpx

from .hooks import Handler

Middleware = Callable[[httpx.Request, Handler], Awaitable[httpx.Response]]

# Outermost first. A stage sees the outcome of every stage listed after it,
# so each retry passes through throttling again and on_error only ever sees
# the final outcome.
STAGE_ORDER: Tuple[str, ...] = ("on_error", "on_before_request", "auth", "retry", "throttle")


@dataclass(frozen=True)
class Stage:
    name: str
    middleware: Middleware


class Pipeline:
    def __init__(self) -> None:
        self._stages: Dict[str, Stage] = {}

    def use(self, name: str, middleware: Middleware) -> None:
        if name not in STAGE_ORDER:
            raise ValueError(f"Unknown pipeline stage {name!r}; expected one of {STAGE_ORDER}")
        if name in self._stages:
            raise ValueError(f"Pipeline stage {name!r} is already registered")
        self._stages[name] = Stage(name=name, middleware=middleware)

    def get(self, name: str) -> Middleware | None:
        stage = self._stages.get(name)
        return stage.middleware if stage else None

    @property
    def stages(self) -> Tuple[Stage, ...]:
        return tuple(self._stages[name] for name in STAGE_ORDER if name in self._stages)

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(stage.name for stage in self.stages)

    def compose(self, dispatch: Handler) -> Handler:
        handler = dispatch
        for stage in reversed(self.stages):
            handler = _bind(stage.middleware, handler)
        return handler

    def __len__(self) -> int:
        return len(self._stages)

    def __repr__(self) -> str:
        return f"Pipeline({' -> '.join(self.names)})"


def _bind(middleware: Middleware, call_next: Handler) -> Handler:
    async def handler(request: httpx.Request) -> httpx.Response:
        return await middleware(request, call_next)

    return handler


__all__ = ["Middleware", "Pipeline", "STAGE_ORDER", "Stage"]
