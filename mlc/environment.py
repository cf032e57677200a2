from __future__ import annotations

from mlc.asm_model import InternalCompilerError, Location, Memory, Register


SLOT_SIZE = 8


class Environment:
    """Stack slots of one function, addressed below the frame base.

    Bindings are never removed; a later binding of the same name shadows the
    earlier one for lookups, but both keep their slot.
    """

    def __init__(self, base: Register = Register.RBP) -> None:
        self.base = base
        self._bindings: list[tuple[str, Location]] = []
        self._allocated = 0

    @property
    def allocated(self) -> int:
        return self._allocated

    def allocate(self, name: str) -> Memory:
        self._allocated += SLOT_SIZE
        location = Memory(self.base, -self._allocated)
        self._bindings.append((name, location))
        return location

    def get(self, name: str) -> Location:
        for bound_name, location in reversed(self._bindings):
            if bound_name == name:
                return location
        raise InternalCompilerError(f"unbound variable '{name}'")

    def get_env(self) -> tuple[tuple[str, Location], ...]:
        return tuple(self._bindings)
