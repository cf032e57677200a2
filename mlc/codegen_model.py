from __future__ import annotations

from dataclasses import dataclass, field

from mlc.asm_model import GeneratedLabel, GivenLabel, Label, Location
from mlc.emitter import CodeEmitter


class CodegenError(ValueError):
    pass


Binding = Location | Label


@dataclass
class EmitContext:
    emitter: CodeEmitter
    # Locals map to their stack slot, named functions to their entry label.
    bindings: dict[str, Binding] = field(default_factory=dict)

    def bind(self, name: str, binding: Binding) -> EmitContext:
        return EmitContext(emitter=self.emitter, bindings={**self.bindings, name: binding})

    def function_bindings(self) -> dict[str, Label]:
        return {name: binding for name, binding in self.bindings.items() if is_function_binding(binding)}


def is_function_binding(binding: Binding) -> bool:
    return isinstance(binding, (GeneratedLabel, GivenLabel))


MAIN_SYMBOL = "main"
READ_INT_SYMBOL = "read_int"
TEXT_SECTION_HEADER = "\t.text\n\t.globl main"
GNU_STACK_NOTE = '\t.section .note.GNU-stack,"",@progbits'
