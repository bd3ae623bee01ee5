"""
Runtime glue between an evaluator and the Lox object model.

The evaluator owns statements and expressions; it hands property reads,
writes, calls and class declarations to a Runtime, which applies the
object-model rules defined in `lox_datatypes`.
"""

import os
import sys
import time
from typing import Any, Callable, Dict, List, Optional, Union

from lox.lox_datatypes import (
    Scope, Name, LoxCallable, FunctionDeclaration, LoxFunction, NativeFunction,
    LoxClass, LoxInstance, LoxRuntimeError, UndefinedProperty, as_name
)
from lox.lox_printer import Printer


class Runtime:
    """Holds the global scope and performs calls and property access."""

    def __init__(self, printer: Optional[Printer] = None):
        self.globals = Scope()
        self.printer = printer or Printer()
        self.define_native("clock", 0, time.time)

    def _dbg(self, *parts):
        if os.environ.get("LOX_DEBUG"):
            try:
                print("[DBG]", *parts, file=sys.stderr)
            except Exception:
                pass

    # -- Globals ---------------------------------------------------------

    def define_native(self, name: str, arity: int, fn: Callable[..., Any]) -> NativeFunction:
        native = NativeFunction(name, arity, fn)
        self.globals.define(name, native)
        return native

    # -- Execution hook --------------------------------------------------

    def execute_block(self, body: Any, scope: Scope) -> Any:
        """Runs a function body in `scope`.

        Evaluators override this. The default treats the body as a host
        callable taking `(runtime, scope)`, which may raise `Return`.
        """
        if not callable(body):
            raise TypeError(f"Cannot execute function body of type {type(body).__name__}")
        return body(self, scope)

    # -- Declarations ----------------------------------------------------

    def declare_class(self, name: Union[Name, str], superclass: Any,
                      methods: List[FunctionDeclaration], closure: Scope) -> LoxClass:
        """Builds a class value from a class declaration.

        With a superclass, methods close over an extra scope binding `super`.
        """
        name = as_name(name)
        if superclass is not None and not isinstance(superclass, LoxClass):
            raise LoxRuntimeError("Superclass must be a class.", name)

        method_scope = closure
        if superclass is not None:
            method_scope = Scope(parent=closure)
            method_scope.define("super", superclass)

        table: Dict[str, LoxFunction] = {}
        for decl in methods:
            table[decl.name.text] = LoxFunction(decl, method_scope, decl.name.text == "init")
        self._dbg("declare_class", name.text, "super", getattr(superclass, 'name', None), "methods", list(table))
        return LoxClass(name.text, superclass, table)

    # -- Calls -----------------------------------------------------------

    def call(self, callee: Any, arguments: List[Any], name: Optional[Union[Name, str]] = None) -> Any:
        token = as_name(name) if name is not None else None
        if not isinstance(callee, LoxCallable):
            raise LoxRuntimeError("Can only call functions and classes.", token)
        if len(arguments) != callee.arity():
            raise LoxRuntimeError(
                f"Expected {callee.arity()} arguments but got {len(arguments)}.", token)
        self._dbg("call", type(callee).__name__, self.stringify(callee), "argc", len(arguments))
        return callee.call(self, arguments)

    def invoke(self, obj: Any, name: Union[Name, str], arguments: List[Any]) -> Any:
        """Looks up a property and calls it in one step, as in `obj.name(args)`."""
        if not isinstance(obj, LoxInstance):
            raise LoxRuntimeError("Only instances have methods.", as_name(name))
        return self.call(obj.get(name), arguments, name)

    # -- Properties ------------------------------------------------------

    def get_property(self, obj: Any, name: Union[Name, str]) -> Any:
        if not isinstance(obj, LoxInstance):
            raise LoxRuntimeError("Only instances have properties.", as_name(name))
        return obj.get(name)

    def set_property(self, obj: Any, name: Union[Name, str], value: Any) -> Any:
        if not isinstance(obj, LoxInstance):
            raise LoxRuntimeError("Only instances have fields.", as_name(name))
        obj.set(name, value)
        return value

    def get_super(self, superclass: LoxClass, instance: LoxInstance, name: Union[Name, str]) -> LoxFunction:
        """Resolves `super.name` starting at `superclass`, bound to `instance`."""
        method = superclass.find_method(name)
        if method is None:
            raise UndefinedProperty(name)
        return method.bind(instance)

    def stringify(self, value: Any) -> str:
        return self.printer.pformat(value)
