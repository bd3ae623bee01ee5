from lox.lox_datatypes import (
    Name, Scope, LoxCallable, FunctionDeclaration, LoxFunction, NativeFunction,
    LoxClass, LoxInstance, LoxRuntimeError, UndefinedProperty, Return
)
from lox.lox_runtime import Runtime
from lox.lox_printer import Printer

__all__ = [
    "Name",
    "Scope",
    "LoxCallable",
    "FunctionDeclaration",
    "LoxFunction",
    "NativeFunction",
    "LoxClass",
    "LoxInstance",
    "LoxRuntimeError",
    "UndefinedProperty",
    "Return",
    "Runtime",
    "Printer",
]
