"""Native functions installed into the global scope of every interpreter."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Mapping, Sequence

from ..objects import LoxCallable

if TYPE_CHECKING:  # pragma: no cover
    from ..interp import Interpreter


NativeImpl = Callable[["Interpreter", Sequence[object]], object]


@dataclass(eq=False)
class NativeFunction(LoxCallable):
    name: str
    param_count: int
    impl: NativeImpl

    def arity(self) -> int:
        return self.param_count

    def call(self, interpreter: Interpreter, arguments: Sequence[object]) -> object:
        return self.impl(interpreter, arguments)

    def __str__(self) -> str:
        return "<native fn>"


def _native_clock(interpreter: Interpreter, arguments: Sequence[object]) -> object:
    return time.time()


NATIVES: Mapping[str, NativeFunction] = {
    "clock": NativeFunction(name="clock", param_count=0, impl=_native_clock),
}
