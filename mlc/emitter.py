from __future__ import annotations

from dataclasses import dataclass

from mlc.asm_model import (
    InternalCompilerError,
    Label,
    Location,
    Register,
    RegisterLocation,
    constant,
    rbp,
    rsp,
)
from mlc.environment import Environment
from mlc.instructions import (
    Add,
    Call,
    Cmp,
    Instruction,
    Je,
    Jge,
    Jmp,
    Jne,
    LabelMark,
    Lea,
    Mov,
    Mul,
    Neg,
    Not,
    Pop,
    Push,
    Ret,
    Sub,
    Xor,
    render_instructions,
)


# The one callee-saved register the epilogue pops back.
SAVED_REGISTER = RegisterLocation(Register.RBX)


class EmitterFinalizedError(InternalCompilerError):
    pass


@dataclass(frozen=True)
class GeneratedCode:
    label: Label
    text: str

    def __str__(self) -> str:
        return self.text


class CodeEmitter:
    """Collects the body of one function and brackets it on ``ret()``.

    The frame size is only known once the whole body has been built, so the
    prologue is synthesized in ``ret()`` and placed ahead of every body
    instruction.
    """

    def __init__(self, entry_label: Label) -> None:
        self.entry_label = entry_label
        self.env = Environment()
        self._body: list[Instruction] = []
        self._finalized = False

    @property
    def allocated(self) -> int:
        return self.env.allocated

    def _check_open(self) -> None:
        if self._finalized:
            raise EmitterFinalizedError(f"function '{self.entry_label}' was already finalized")

    def _append(self, instruction: Instruction) -> CodeEmitter:
        self._check_open()
        self._body.append(instruction)
        return self

    def allocate(self, name: str) -> Location:
        self._check_open()
        return self.env.allocate(name)

    def get(self, name: str) -> Location:
        return self.env.get(name)

    def get_env(self) -> tuple[tuple[str, Location], ...]:
        return self.env.get_env()

    def label(self, label: Label) -> CodeEmitter:
        return self._append(LabelMark(label))

    def push(self, loc: Location) -> CodeEmitter:
        return self._append(Push(loc))

    def pop(self, loc: Location) -> CodeEmitter:
        return self._append(Pop(loc))

    def mov(self, source: Location, target: Location) -> CodeEmitter:
        return self._append(Mov(source, target))

    def lea(self, source: Location, target: Location) -> CodeEmitter:
        return self._append(Lea(source, target))

    def not_(self, loc: Location) -> CodeEmitter:
        return self._append(Not(loc))

    def neg(self, loc: Location) -> CodeEmitter:
        return self._append(Neg(loc))

    def add(self, source: Location, target: Location) -> CodeEmitter:
        return self._append(Add(source, target))

    def sub(self, source: Location, target: Location) -> CodeEmitter:
        return self._append(Sub(source, target))

    def mul(self, source: Location, target: Location) -> CodeEmitter:
        return self._append(Mul(source, target))

    def xor(self, source: Location, target: Location) -> CodeEmitter:
        return self._append(Xor(source, target))

    def cmp(self, source: Location, target: Location) -> CodeEmitter:
        return self._append(Cmp(source, target))

    def jmp(self, label: Label) -> CodeEmitter:
        return self._append(Jmp(label))

    def je(self, label: Label) -> CodeEmitter:
        return self._append(Je(label))

    def jge(self, label: Label) -> CodeEmitter:
        return self._append(Jge(label))

    def jne(self, label: Label) -> CodeEmitter:
        return self._append(Jne(label))

    def call(self, symbol: str | Label) -> CodeEmitter:
        return self._append(Call(str(symbol)))

    def _prologue(self) -> list[Instruction]:
        prologue: list[Instruction] = [
            LabelMark(self.entry_label),
            Push(rbp()),
            Mov(rsp(), rbp()),
        ]
        if self.allocated > 0:
            prologue.append(Sub(constant(self.allocated), rsp()))
        return prologue

    def ret(self) -> GeneratedCode:
        self.mov(rbp(), rsp()).pop(SAVED_REGISTER)
        self._finalized = True

        instructions = [*self._prologue(), *self._body, Ret()]
        return GeneratedCode(label=self.entry_label, text=render_instructions(instructions))
