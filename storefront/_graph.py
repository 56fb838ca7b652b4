"""
Graph runner — sugar over nodnod for decision graphs.

Nodes are classes with a ``__compose__`` classmethod whose annotated
parameters are the nodes (or injected values) they depend on:

    @node
    class SpecNode:
        def __init__(self, spec: GuardSpec) -> None:
            self.spec = spec

        @classmethod
        def __compose__(cls, spec: GuardSpec) -> "SpecNode":
            return cls(spec)

    final = await run(FinalDecisionNode).inject(spec)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, cast

from nodnod import EventLoopAgent, Node, Scope, Value, scalar_node

node = scalar_node


@dataclass(slots=True)
class Run[T]:
    """
    Fluent runner for a target node.

    All dependencies are discovered from the target. Injected values are
    keyed by their runtime type.
    """

    _target: type[T]
    _injections: tuple[tuple[type[Any], Any], ...] = ()

    def inject(self, value: object) -> Run[T]:
        return Run(
            _target=self._target,
            _injections=(*self._injections, (cast(type[Any], type(value)), value)),
        )

    def __await__(self) -> Any:
        return self._execute().__await__()

    async def _execute(self) -> T:
        agent = EventLoopAgent.build({cast(type[Node[Any, Any]], self._target)})

        async with Scope(detail="run") as scope:
            for typ, value in self._injections:
                scope.push(Value(typ, value))

            await agent.run(scope, {})

            found = scope.get(self._target)
            if found is None:
                raise KeyError(f"{self._target.__name__} was not produced")
            return cast(T, found.value)


def run[T](target: type[T]) -> Run[T]:
    return Run(_target=target)


__all__ = ("node", "Run", "run")
