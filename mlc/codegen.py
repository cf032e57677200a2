from __future__ import annotations

from typing import Callable

from mlc.asm_model import GeneratedLabel, Label, constant, given_label, rax, rbp, rcx, rdi
from mlc.ast_nodes import (
    App,
    Assign,
    BinOp,
    BinaryOp,
    BoolLit,
    Case,
    Deref,
    Expr,
    Fst,
    If,
    Inl,
    Inr,
    IntLit,
    Lambda,
    Let,
    LetFun,
    LetRecFun,
    Pair,
    Ref,
    Seq,
    Snd,
    UnaryOp,
    Unit,
    UnOp,
    Var,
    What,
    While,
)
from mlc.codegen_model import (
    GNU_STACK_NOTE,
    MAIN_SYMBOL,
    READ_INT_SYMBOL,
    TEXT_SECTION_HEADER,
    CodegenError,
    EmitContext,
    is_function_binding,
)
from mlc.emitter import CodeEmitter, GeneratedCode
from mlc.labels import CompilationSession


def free_variables(expr: Expr) -> set[str]:
    if isinstance(expr, Var):
        return {expr.name}
    if isinstance(expr, (Unit, What, IntLit, BoolLit)):
        return set()
    if isinstance(expr, Lambda):
        return free_variables(expr.body) - {expr.param}
    if isinstance(expr, Let):
        return free_variables(expr.value) | (free_variables(expr.body) - {expr.name})
    if isinstance(expr, LetFun):
        return free_variables(expr.function) | (free_variables(expr.body) - {expr.name})
    if isinstance(expr, LetRecFun):
        return (free_variables(expr.function) | free_variables(expr.body)) - {expr.name}
    if isinstance(expr, Case):
        return free_variables(expr.scrutinee) | free_variables(expr.left) | free_variables(expr.right)
    if isinstance(expr, Seq):
        result: set[str] = set()
        for item in expr.items:
            result |= free_variables(item)
        return result
    if isinstance(expr, (UnaryOp, Fst, Snd, Inl, Inr, Ref, Deref)):
        return free_variables(expr.operand)
    if isinstance(expr, (BinaryOp, Pair)):
        return free_variables(expr.left) | free_variables(expr.right)
    if isinstance(expr, If):
        return free_variables(expr.condition) | free_variables(expr.then_branch) | free_variables(expr.else_branch)
    if isinstance(expr, While):
        return free_variables(expr.condition) | free_variables(expr.body)
    if isinstance(expr, Assign):
        return free_variables(expr.target) | free_variables(expr.value)
    if isinstance(expr, App):
        return free_variables(expr.function) | free_variables(expr.argument)
    raise TypeError(f"Unsupported expression: {type(expr).__name__}")


class CodeGenerator:
    def __init__(self, session: CompilationSession) -> None:
        self.session = session
        self.functions: list[GeneratedCode] = []

    def _new_label(self) -> GeneratedLabel:
        return self.session.new_label()

    def _emit_compare_result(self, ctx: EmitContext, jump_if_false: Callable[[Label], CodeEmitter]) -> None:
        # mov leaves the flags set by the preceding cmp intact.
        done_label = self._new_label()
        ctx.emitter.mov(constant(0), rax())
        jump_if_false(done_label)
        ctx.emitter.mov(constant(1), rax()).label(done_label)

    def _emit_var(self, expr: Var, ctx: EmitContext) -> None:
        binding = ctx.bindings.get(expr.name)
        if binding is None:
            raise CodegenError(f"unbound variable '{expr.name}'")
        if is_function_binding(binding):
            raise NotImplementedError(f"function '{expr.name}' used as a value; only direct calls are supported")
        ctx.emitter.mov(binding, rax())

    def _emit_unary_expr(self, expr: UnaryOp, ctx: EmitContext) -> None:
        self._emit_expr(expr.operand, ctx)
        if expr.op == UnOp.NEG:
            ctx.emitter.neg(rax())
            return
        if expr.op == UnOp.NOT:
            ctx.emitter.xor(constant(1), rax())
            return
        raise NotImplementedError(f"unary operator '{expr.op.value}' is not supported")

    def _emit_logical_binary_expr(self, expr: BinaryOp, ctx: EmitContext) -> bool:
        if expr.op not in (BinOp.AND, BinOp.OR):
            return False

        done_label = self._new_label()
        self._emit_expr(expr.left, ctx)
        ctx.emitter.cmp(constant(0), rax())
        if expr.op == BinOp.AND:
            ctx.emitter.je(done_label)
        else:
            ctx.emitter.jne(done_label)
        self._emit_expr(expr.right, ctx)
        ctx.emitter.label(done_label)
        return True

    def _emit_binary_expr(self, expr: BinaryOp, ctx: EmitContext) -> None:
        if self._emit_logical_binary_expr(expr, ctx):
            return
        if expr.op == BinOp.DIV:
            raise NotImplementedError("binary operator 'div' is not supported")

        out = ctx.emitter
        self._emit_expr(expr.right, ctx)
        out.push(rax())
        self._emit_expr(expr.left, ctx)
        out.pop(rcx())

        if expr.op == BinOp.ADD:
            out.add(rcx(), rax())
            return
        if expr.op == BinOp.SUB:
            out.sub(rcx(), rax())
            return
        if expr.op == BinOp.MUL:
            out.mul(rcx(), rax())
            return

        out.cmp(rcx(), rax())
        if expr.op == BinOp.LT:
            self._emit_compare_result(ctx, out.jge)
            return
        if expr.op in (BinOp.EQ, BinOp.EQI, BinOp.EQB):
            self._emit_compare_result(ctx, out.jne)
            return
        raise NotImplementedError(f"binary operator '{expr.op.value}' is not supported")

    def _emit_if_expr(self, expr: If, ctx: EmitContext) -> None:
        else_label = self._new_label()
        done_label = self._new_label()

        self._emit_expr(expr.condition, ctx)
        ctx.emitter.cmp(constant(0), rax()).je(else_label)
        self._emit_expr(expr.then_branch, ctx)
        ctx.emitter.jmp(done_label).label(else_label)
        self._emit_expr(expr.else_branch, ctx)
        ctx.emitter.label(done_label)

    def _emit_while_expr(self, expr: While, ctx: EmitContext) -> None:
        start_label = self._new_label()
        done_label = self._new_label()

        ctx.emitter.label(start_label)
        self._emit_expr(expr.condition, ctx)
        ctx.emitter.cmp(constant(0), rax()).je(done_label)
        self._emit_expr(expr.body, ctx)
        ctx.emitter.jmp(start_label).label(done_label)
        ctx.emitter.mov(constant(0), rax())

    def _emit_let_expr(self, expr: Let, ctx: EmitContext) -> None:
        self._emit_expr(expr.value, ctx)
        slot = ctx.emitter.allocate(expr.name)
        ctx.emitter.mov(rax(), slot)
        self._emit_expr(expr.body, ctx.bind(expr.name, slot))

    def _check_captures(self, name: str, function: Lambda, ctx: EmitContext, *, recursive: bool) -> None:
        for free_name in sorted(free_variables(function)):
            if recursive and free_name == name:
                continue
            binding = ctx.bindings.get(free_name)
            if binding is None:
                raise CodegenError(f"unbound variable '{free_name}' in function '{name}'")
            if not is_function_binding(binding):
                raise NotImplementedError(f"function '{name}' captures local '{free_name}'; closures are not supported")

    def _emit_function(self, name: str, function: Lambda, ctx: EmitContext, *, recursive: bool) -> GeneratedLabel:
        self._check_captures(name, function, ctx, recursive=recursive)

        entry_label = self._new_label()
        emitter = CodeEmitter(entry_label)
        param_slot = emitter.allocate(function.param)
        emitter.mov(rdi(), param_slot)

        fn_ctx = EmitContext(emitter=emitter, bindings=ctx.function_bindings())
        if recursive:
            fn_ctx = fn_ctx.bind(name, entry_label)
        fn_ctx = fn_ctx.bind(function.param, param_slot)

        self._emit_expr(function.body, fn_ctx)
        self.functions.append(emitter.ret())
        return entry_label

    def _emit_let_fun_expr(self, expr: LetFun | LetRecFun, ctx: EmitContext) -> None:
        entry_label = self._emit_function(
            expr.name,
            expr.function,
            ctx,
            recursive=isinstance(expr, LetRecFun),
        )
        self._emit_expr(expr.body, ctx.bind(expr.name, entry_label))

    def _emit_app_expr(self, expr: App, ctx: EmitContext) -> None:
        callee = expr.function
        binding = ctx.bindings.get(callee.name) if isinstance(callee, Var) else None
        if binding is None or not is_function_binding(binding):
            raise NotImplementedError("only direct calls to named functions are supported")

        # The callee epilogue pops its saved frame base into %rbx, so the
        # caller keeps its own %rbp across the call.
        self._emit_expr(expr.argument, ctx)
        ctx.emitter.mov(rax(), rdi()).push(rbp()).call(binding).pop(rbp())

    def _emit_expr(self, expr: Expr, ctx: EmitContext) -> None:
        out = ctx.emitter

        if isinstance(expr, Unit):
            out.mov(constant(0), rax())
            return

        if isinstance(expr, What):
            out.call(READ_INT_SYMBOL)
            return

        if isinstance(expr, IntLit):
            out.mov(constant(expr.value), rax())
            return

        if isinstance(expr, BoolLit):
            out.mov(constant(1 if expr.value else 0), rax())
            return

        if isinstance(expr, Var):
            self._emit_var(expr, ctx)
            return

        if isinstance(expr, UnaryOp):
            self._emit_unary_expr(expr, ctx)
            return

        if isinstance(expr, BinaryOp):
            self._emit_binary_expr(expr, ctx)
            return

        if isinstance(expr, If):
            self._emit_if_expr(expr, ctx)
            return

        if isinstance(expr, While):
            self._emit_while_expr(expr, ctx)
            return

        if isinstance(expr, Seq):
            for item in expr.items:
                self._emit_expr(item, ctx)
            return

        if isinstance(expr, Let):
            self._emit_let_expr(expr, ctx)
            return

        if isinstance(expr, (LetFun, LetRecFun)):
            self._emit_let_fun_expr(expr, ctx)
            return

        if isinstance(expr, App):
            self._emit_app_expr(expr, ctx)
            return

        raise NotImplementedError(f"expression codegen not implemented for {type(expr).__name__}")

    def generate(self, program: Expr) -> list[GeneratedCode]:
        emitter = CodeEmitter(given_label(MAIN_SYMBOL))
        self._emit_expr(program, EmitContext(emitter=emitter))
        return [emitter.ret(), *self.functions]


def emit_functions(program: Expr, session: CompilationSession | None = None) -> list[GeneratedCode]:
    if session is None:
        session = CompilationSession()
    return CodeGenerator(session).generate(program)


def emit_program(program: Expr, session: CompilationSession | None = None) -> str:
    functions = emit_functions(program, session)
    body = "".join(code.text for code in functions)
    return f"{TEXT_SECTION_HEADER}{body}\n\n{GNU_STACK_NOTE}\n"
