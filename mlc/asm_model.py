from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class InternalCompilerError(RuntimeError):
    """Raised when an earlier pass handed the backend something it guarantees never happens."""


class Register(str, Enum):
    RAX = "rax"
    RBX = "rbx"
    RCX = "rcx"
    RDX = "rdx"
    RSP = "rsp"
    RBP = "rbp"
    RSI = "rsi"
    RDI = "rdi"
    R8 = "r8"
    R9 = "r9"
    RIP = "rip"

    def __str__(self) -> str:
        return f"%{self.value}"


@dataclass(frozen=True)
class GeneratedLabel:
    id: int

    def __str__(self) -> str:
        return f".L{self.id}"


@dataclass(frozen=True)
class GivenLabel:
    name: str

    def __str__(self) -> str:
        return self.name


Label = GeneratedLabel | GivenLabel


@dataclass(frozen=True)
class Constant:
    value: int

    def __str__(self) -> str:
        return f"${self.value}"


@dataclass(frozen=True)
class RegisterLocation:
    register: Register

    def __str__(self) -> str:
        return str(self.register)


@dataclass(frozen=True)
class Memory:
    base: Register
    offset: int

    def __str__(self) -> str:
        return f"{self.offset}({self.base})"


@dataclass(frozen=True)
class Relative:
    base: Register
    label: Label

    def __str__(self) -> str:
        return f"{self.label}({self.base})"


Location = Constant | RegisterLocation | Memory | Relative


def rax() -> RegisterLocation:
    return RegisterLocation(Register.RAX)


def rbx() -> RegisterLocation:
    return RegisterLocation(Register.RBX)


def rcx() -> RegisterLocation:
    return RegisterLocation(Register.RCX)


def rdx() -> RegisterLocation:
    return RegisterLocation(Register.RDX)


def rsp() -> RegisterLocation:
    return RegisterLocation(Register.RSP)


def rbp() -> RegisterLocation:
    return RegisterLocation(Register.RBP)


def rsi() -> RegisterLocation:
    return RegisterLocation(Register.RSI)


def rdi() -> RegisterLocation:
    return RegisterLocation(Register.RDI)


def r8() -> RegisterLocation:
    return RegisterLocation(Register.R8)


def r9() -> RegisterLocation:
    return RegisterLocation(Register.R9)


def rip() -> RegisterLocation:
    return RegisterLocation(Register.RIP)


def constant(value: int) -> Constant:
    return Constant(value)


def given_label(name: str) -> GivenLabel:
    return GivenLabel(name)


def _base_register(loc: Location) -> Register:
    if not isinstance(loc, RegisterLocation):
        raise InternalCompilerError(f"non-register used as memory base: {loc}")
    return loc.register


def deref(loc: Location, offset: int) -> Memory:
    return Memory(_base_register(loc), offset)


def relative(loc: Location, label: Label) -> Relative:
    return Relative(_base_register(loc), label)
