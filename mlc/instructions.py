from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Iterable

from mlc.asm_model import Label, Location


# Operands are rendered as given; pairing two memory operands or targeting
# a constant is left to the caller.


@dataclass(frozen=True)
class LabelMark:
    label: Label

    def __str__(self) -> str:
        return f"\n\n{self.label}:"


@dataclass(frozen=True)
class UnaryInstruction:
    operand: Location
    mnemonic: ClassVar[str] = ""

    def __str__(self) -> str:
        return f"\n\t{self.mnemonic} {self.operand}"


@dataclass(frozen=True)
class BinaryInstruction:
    source: Location
    target: Location
    mnemonic: ClassVar[str] = ""

    def __str__(self) -> str:
        return f"\n\t{self.mnemonic} {self.source},{self.target}"


@dataclass(frozen=True)
class JumpInstruction:
    label: Label
    mnemonic: ClassVar[str] = ""

    def __str__(self) -> str:
        return f"\n\t{self.mnemonic} {self.label}"


class Push(UnaryInstruction):
    mnemonic = "pushq"


class Pop(UnaryInstruction):
    mnemonic = "popq"


class Not(UnaryInstruction):
    mnemonic = "notq"


class Neg(UnaryInstruction):
    mnemonic = "negq"


class Add(BinaryInstruction):
    mnemonic = "addq"


class Sub(BinaryInstruction):
    mnemonic = "subq"


class Mul(BinaryInstruction):
    mnemonic = "imulq"


class Xor(BinaryInstruction):
    mnemonic = "xorq"


class Cmp(BinaryInstruction):
    mnemonic = "cmpq"


class Mov(BinaryInstruction):
    mnemonic = "movq"


class Lea(BinaryInstruction):
    mnemonic = "leaq"


class Jmp(JumpInstruction):
    mnemonic = "jmp"


class Je(JumpInstruction):
    mnemonic = "je"


class Jge(JumpInstruction):
    mnemonic = "jge"


class Jne(JumpInstruction):
    mnemonic = "jne"


@dataclass(frozen=True)
class Call:
    symbol: str

    def __str__(self) -> str:
        return f"\n\tcall {self.symbol}"


@dataclass(frozen=True)
class Ret:
    def __str__(self) -> str:
        return "\n\tret"


Instruction = LabelMark | UnaryInstruction | BinaryInstruction | JumpInstruction | Call | Ret


def render_instructions(instructions: Iterable[Instruction]) -> str:
    return "".join(str(instruction) for instruction in instructions)
