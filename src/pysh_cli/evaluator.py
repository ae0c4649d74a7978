# pysh — Interactive Python Command Shell
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Python evaluator used by the script runner.

Source text is compiled with top-level await enabled, so a script body
behaves like the inside of an async function while its assignments and
definitions still land in the shared namespace. A trailing expression
statement is split off and becomes the evaluation result.

Call statements in the body are settled in place: if the call returns an
awaitable (a bare `run('other.py')`), it is awaited before the next
statement runs.
"""

from __future__ import annotations

import ast
import builtins
import inspect
import types
from typing import Any

COMPILE_FLAGS = ast.PyCF_ALLOW_TOP_LEVEL_AWAIT
SETTLE_NAME = "__pysh_settle__"


async def settle(value: Any) -> Any:
    """Await value if it is awaitable; plain values pass through."""
    if inspect.isawaitable(value):
        return await value
    return value


class _SettleCallStatements(ast.NodeTransformer):
    """Rewrite `f(...)` statements as `await __pysh_settle__(f(...))`."""

    def visit_Expr(self, node: ast.Expr) -> ast.AST:
        if not isinstance(node.value, ast.Call):
            return node
        wrapped = ast.Await(
            value=ast.Call(
                func=ast.Name(id=SETTLE_NAME, ctx=ast.Load()),
                args=[node.value],
                keywords=[],
            )
        )
        return ast.copy_location(ast.Expr(value=wrapped), node)

    def _keep(self, node: ast.AST) -> ast.AST:
        return node

    # Function and class bodies are not top-level code
    visit_FunctionDef = _keep
    visit_AsyncFunctionDef = _keep
    visit_ClassDef = _keep


def _is_coroutine_code(code: types.CodeType | None) -> bool:
    return code is not None and bool(code.co_flags & inspect.CO_COROUTINE)


class PythonEvaluator:
    """Evaluator implementation backed by compile()/exec()."""

    def compile(
        self, source: str, tag: str
    ) -> tuple[types.CodeType, types.CodeType | None]:
        """Compile source into (body, tail) code objects.

        tail is the trailing expression, if the source ends with one.
        """
        tree = compile(
            source, tag, "exec", flags=ast.PyCF_ONLY_AST | COMPILE_FLAGS
        )
        tail = None
        if tree.body and isinstance(tree.body[-1], ast.Expr):
            tail = ast.Expression(body=tree.body.pop().value)

        tree = ast.fix_missing_locations(_SettleCallStatements().visit(tree))
        body = compile(tree, tag, "exec", flags=COMPILE_FLAGS)
        tail_code = (
            compile(tail, tag, "eval", flags=COMPILE_FLAGS)
            if tail is not None else None
        )
        return body, tail_code

    def evaluate(self, source: str, scope: dict[str, Any], tag: str) -> Any:
        scope.setdefault("__builtins__", builtins)
        body, tail = self.compile(source, tag)
        if SETTLE_NAME in body.co_names:
            scope[SETTLE_NAME] = settle

        if _is_coroutine_code(body) or _is_coroutine_code(tail):
            return self._evaluate_async(body, tail, scope)

        exec(body, scope)
        if tail is None:
            return None
        return eval(tail, scope)

    async def _evaluate_async(
        self,
        body: types.CodeType,
        tail: types.CodeType | None,
        scope: dict[str, Any],
    ) -> Any:
        if _is_coroutine_code(body):
            await types.FunctionType(body, scope)()
        else:
            exec(body, scope)

        if tail is None:
            return None
        if _is_coroutine_code(tail):
            return await types.FunctionType(tail, scope)()
        return await settle(eval(tail, scope))
