# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/infprep_sandbox

"""Evaluation of generator bodies inside a curated namespace.

This module only depends on the standard library: the subprocess runtime runs
it directly as a script (``python -I evaluation.py``) so that the child
interpreter does not have to import the rest of the package.

Worker protocol: the parent writes one JSON object ``{"code", "allowed_modules"}``
to stdin and closes it. The worker answers with JSON lines on stdout, one
``{"type": "log", "entry"}`` per console call, then a single
``{"type": "result", "output", "error"}``.
"""

import ast
import builtins
import json
import sys
from typing import Any, Callable, Iterable, TextIO

GENERATOR_NAME = "__generator__"
CONSOLE_NAME = "console"
FILENAME = "<generator>"
TIMEOUT_MESSAGE = "Code execution timeout"

SAFE_BUILTIN_NAMES = (
    # constructors and types
    "bool", "bytes", "complex", "dict", "float", "frozenset", "int", "list",
    "object", "range", "set", "slice", "str", "tuple", "type",
    "classmethod", "property", "staticmethod", "super",
    # functions
    "abs", "all", "any", "bin", "callable", "chr", "divmod", "enumerate",
    "filter", "format", "getattr", "hasattr", "hash", "hex", "isinstance",
    "issubclass", "iter", "len", "map", "max", "min", "next", "oct", "ord",
    "pow", "repr", "reversed", "round", "sorted", "sum", "zip",
    "__build_class__",
    # exceptions
    "ArithmeticError", "AssertionError", "AttributeError", "Exception",
    "IndexError", "KeyError", "LookupError", "NameError", "NotImplementedError",
    "OverflowError", "RecursionError", "RuntimeError", "StopIteration",
    "TypeError", "ValueError", "ZeroDivisionError",
)  # fmt: skip


class ConsoleCapture:
    """The logger injected into generator code as ``console``.

    Every call appends exactly one entry. ``sink`` additionally receives each
    entry as it is produced (the subprocess worker streams them to the parent).
    """

    def __init__(self, sink: Callable[[str], None] | None = None):
        self.entries: list[str] = []
        self._sink = sink

    def log(self, *args: Any) -> None:
        self._emit(format_message(args))

    def warn(self, *args: Any) -> None:
        self._emit(f"WARNING: {format_message(args)}")

    def error(self, *args: Any) -> None:
        self._emit(f"ERROR: {format_message(args)}")

    def snapshot(self) -> list[str]:
        return list(self.entries)

    def _emit(self, entry: str) -> None:
        self.entries.append(entry)
        if self._sink is not None:
            self._sink(entry)


def format_value(value: Any) -> str:
    """Render one console argument. Structured values become JSON dumps."""
    if isinstance(value, (dict, list, tuple)):
        try:
            return json.dumps(value, indent=2, ensure_ascii=False, default=str)
        except (TypeError, ValueError):
            return repr(value)
    return str(value)


def format_message(args: Iterable[Any]) -> str:
    return " ".join(format_value(arg) for arg in args)


def render_output(value: Any) -> str:
    """Render a generator's return value.

    JSON-serializable values are emitted as JSON (pretty-printed for containers)
    so the output can be parsed back; anything else falls back to ``str``.
    """
    if value is None:
        return ""
    indent = 2 if isinstance(value, (dict, list, tuple)) else None
    try:
        return json.dumps(value, indent=indent, ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError):
        return str(value)


def describe_error(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


def compile_generator(code: str) -> Any:
    """Wrap ``code`` as the body of ``def __generator__(console)`` and compile it.

    The wrapping happens on the syntax tree, so the user's indentation, string
    literals and line numbers are preserved.

    Raises:
        SyntaxError: If the code does not parse or compile.
    """
    module = ast.parse(f"def {GENERATOR_NAME}({CONSOLE_NAME}):\n    pass\n", filename=FILENAME)
    body = ast.parse(code, filename=FILENAME).body
    if body:
        module.body[0].body = body  # type: ignore[attr-defined]
    return compile(module, FILENAME, "exec")


def guarded_builtins(console: ConsoleCapture, allowed_modules: Iterable[str]) -> dict[str, Any]:
    allowed = frozenset(allowed_modules)

    def guarded_import(
        name: str,
        globals: Any = None,
        locals: Any = None,
        fromlist: Any = (),
        level: int = 0,
    ) -> Any:
        if level or name.partition(".")[0] not in allowed:
            raise ImportError(f"Import of '{name}' is not allowed in the sandbox")
        return builtins.__import__(name, globals, locals, fromlist, level)

    # print() lands in the log stream like console.log; file/end/flush are ignored
    def guarded_print(
        *args: Any,
        sep: str | None = " ",
        end: str | None = "\n",
        file: Any = None,
        flush: bool = False,
    ) -> None:
        console._emit((" " if sep is None else sep).join(format_value(arg) for arg in args))

    table = {name: getattr(builtins, name) for name in SAFE_BUILTIN_NAMES}
    table["__import__"] = guarded_import
    table["print"] = guarded_print
    return table


def run_generator(code: str, console: ConsoleCapture, allowed_modules: Iterable[str]) -> Any:
    """Compile and invoke a generator body, returning its raw return value."""
    namespace: dict[str, Any] = {
        "__builtins__": guarded_builtins(console, allowed_modules),
        "__name__": GENERATOR_NAME,
    }
    exec(compile_generator(code), namespace)  # noqa: S102
    return namespace[GENERATOR_NAME](console)


def evaluate(code: str, console: ConsoleCapture, allowed_modules: Iterable[str]) -> tuple[str, str | None]:
    """Run a generator body and return ``(output, error)``. Never raises.

    Generator code can reach ``BaseException`` itself (``Exception.__base__``),
    so the handler is as wide as a raise can be.
    """
    try:
        return render_output(run_generator(code, console, allowed_modules)), None
    except BaseException as e:  # noqa: BLE001
        return "", describe_error(e)


def serve(stdin: TextIO, channel: TextIO) -> None:
    """Worker entry point: read one request, stream events to ``channel``."""

    def send(event: dict[str, Any]) -> None:
        channel.write(json.dumps(event) + "\n")
        channel.flush()

    request = json.loads(stdin.read())
    console = ConsoleCapture(sink=lambda entry: send({"type": "log", "entry": entry}))
    output, error = evaluate(request["code"], console, request.get("allowed_modules", ()))
    send({"type": "result", "output": output, "error": error})


if __name__ == "__main__":
    # Keep the protocol channel private; stray writes to stdout go to stderr.
    protocol_channel = sys.stdout
    sys.stdout = sys.stderr
    serve(sys.stdin, protocol_channel)
