"""
Defines the core data types for the Lox object model.

This module provides the runtime values the evaluator works with when it
meets classes: scopes, closures, classes and their instances, plus the
errors and signals raised while resolving properties.
"""

import types
from abc import ABC, abstractmethod
from typing import List, Dict, Any, Callable, Optional, Union


# =================================================================
# Errors and Signals
# =================================================================

class LoxRuntimeError(Exception):
    """A user-facing runtime error, optionally tied to a source location."""
    def __init__(self, message: str, name: Optional['Name'] = None):
        super().__init__(message)
        self.message = message
        self.name = name
        self.loc: Optional[Dict[str, Any]] = getattr(name, 'loc', None)

    @property
    def line(self) -> Optional[int]:
        return self.loc.get('line') if self.loc else None


class UndefinedProperty(LoxRuntimeError):
    """Raised when a name matches neither a field nor any inherited method."""
    def __init__(self, name: Union['Name', str]):
        name = as_name(name)
        super().__init__(f"Undefined property '{name.text}'.", name)
        self.key = name.text


class Return(Exception):
    """Unwinds a function body back to its call site carrying the result."""
    def __init__(self, value: Any = None):
        super().__init__()
        self.value = value


# =================================================================
# Names and Scopes
# =================================================================

class Name:
    """An identifier, e.g. 'x' in `point.x`, with an optional source location."""
    def __init__(self, text: str, loc: Optional[Dict[str, Any]] = None):
        self.text = text
        self.loc = loc

    def __repr__(self) -> str:
        return f"Name<{self.text!r}>"

    def __eq__(self, other):
        return isinstance(other, Name) and self.text == other.text

    def __hash__(self):
        return hash(self.text)


def as_name(key: Union[Name, str]) -> Name:
    """Accept either a Name or a bare string wherever a property name is expected."""
    if isinstance(key, Name):
        return key
    if not isinstance(key, str):
        raise TypeError(f"Property name must be a str or Name, not {type(key)}")
    return Name(key)


def _key_text(key: Union[Name, str]) -> str:
    return key.text if isinstance(key, Name) else key


class Scope:
    """A layer of variable bindings with an optional enclosing scope.

    Lookups walk the parent chain; definitions always land in this layer.
    Closures hold on to a Scope, so a binding assigned through one closure is
    visible through every other closure sharing that layer.
    """
    def __init__(self, parent: Optional['Scope'] = None):
        self.bindings: Dict[str, Any] = {}
        self._parent = parent

    def define(self, key: Union[Name, str], value: Any):
        self.bindings[_key_text(key)] = value

    def __setitem__(self, key: Union[Name, str], value: Any):
        self.define(key, value)

    def __getitem__(self, key: Union[Name, str]) -> Any:
        key = _key_text(key)
        owner = self.find_owner(key)
        if owner is not None:
            return owner.bindings[key]
        raise KeyError(f"'{key}'")

    def __contains__(self, key: Any) -> bool:
        if isinstance(key, (Name, str)):
            return self.find_owner(_key_text(key)) is not None
        return False

    def assign(self, key: Union[Name, str], value: Any):
        """Rebinds an existing variable in the scope that owns it."""
        key = _key_text(key)
        owner = self.find_owner(key)
        if owner is None:
            raise KeyError(f"'{key}'")
        owner.bindings[key] = value

    def find_owner(self, key: str) -> Optional['Scope']:
        """Finds the Scope in the lookup chain that owns key."""
        scope = self
        while scope is not None:
            if key in scope.bindings:
                return scope
            scope = scope._parent
        return None

    def get(self, key: Any, default: Any = None) -> Any:
        if not isinstance(key, (Name, str)):
            return default
        key = _key_text(key)
        owner = self.find_owner(key)
        if owner is not None:
            return owner.bindings[key]
        return default

    @property
    def parent(self) -> Optional['Scope']:
        return self._parent

    def keys(self):
        """Returns a view of keys in the current scope only."""
        return self.bindings.keys()

    def __repr__(self) -> str:
        keys = ', '.join(self.bindings.keys())
        parent_id = f", parent=#{id(self.parent)}" if self.parent else ""
        return f"<Scope bindings=[{keys}]{parent_id}>"


# =================================================================
# Callables
# =================================================================

class LoxCallable(ABC):
    """Abstract base class for all values callable from Lox code."""

    @abstractmethod
    def arity(self) -> int:
        ...

    @abstractmethod
    def call(self, runtime: Any, arguments: List[Any]) -> Any:
        ...


class FunctionDeclaration:
    """The static part of a function: its name, parameters and body.

    `body` is opaque to this module; the runtime's `execute_block` hook
    decides how to run it.
    """
    def __init__(self, name: Union[Name, str], params: List[Union[Name, str]], body: Any):
        self.name = as_name(name)
        self.params = [as_name(p) for p in params]
        self.body = body

    def __repr__(self) -> str:
        params = ', '.join(p.text for p in self.params)
        return f"FunctionDeclaration({self.name.text}({params}))"


class LoxFunction(LoxCallable):
    """A function declaration closed over the scope it was declared in."""
    def __init__(self, declaration: FunctionDeclaration, closure: Scope, is_initializer: bool = False):
        self.declaration = declaration
        self.closure = closure
        self.is_initializer = is_initializer

    @property
    def name(self) -> str:
        return self.declaration.name.text

    def bind(self, instance: 'LoxInstance') -> 'LoxFunction':
        """Returns a new closure that sees `instance` as `this`.

        Adds one scope layer on top of the captured one. The receiver itself
        is left untouched.
        """
        scope = Scope(parent=self.closure)
        scope.define("this", instance)
        return LoxFunction(self.declaration, scope, self.is_initializer)

    def arity(self) -> int:
        return len(self.declaration.params)

    def call(self, runtime: Any, arguments: List[Any]) -> Any:
        call_scope = Scope(parent=self.closure)
        for param, arg in zip(self.declaration.params, arguments):
            call_scope.define(param, arg)
        try:
            result = runtime.execute_block(self.declaration.body, call_scope)
        except Return as ret:
            result = ret.value
        # init() always yields the receiver, even after an early `return;`
        if self.is_initializer:
            return self.closure["this"]
        return result

    def __repr__(self) -> str:
        return f"<fn {self.name}>"


class NativeFunction(LoxCallable):
    """A host-provided function exposed to Lox code, e.g. `clock`."""
    def __init__(self, name: str, arity: int, fn: Callable[..., Any]):
        self.name = name
        self._arity = arity
        self.fn = fn

    def arity(self) -> int:
        return self._arity

    def call(self, runtime: Any, arguments: List[Any]) -> Any:
        return self.fn(*arguments)

    def __repr__(self) -> str:
        return "<native fn>"


# =================================================================
# Classes and Instances
# =================================================================

class LoxClass(LoxCallable):
    """A named method table with an optional superclass.

    The table is fixed at construction. Method lookup starts at the most
    derived class and only ascends the superclass chain on a miss, so
    overrides always win.
    """
    def __init__(self, name: str, superclass: Optional['LoxClass'] = None,
                 methods: Optional[Dict[str, LoxFunction]] = None):
        self._name = name
        self._superclass = superclass
        self._methods = types.MappingProxyType(dict(methods or {}))

    @property
    def name(self) -> str:
        return self._name

    @property
    def superclass(self) -> Optional['LoxClass']:
        return self._superclass

    @property
    def methods(self):
        return self._methods

    def find_method(self, name: Union[Name, str]) -> Optional[LoxFunction]:
        name = _key_text(name)
        klass = self
        while klass is not None:
            method = klass._methods.get(name)
            if method is not None:
                return method
            klass = klass._superclass
        return None

    def mro(self) -> List['LoxClass']:
        """The superclass chain, most derived first."""
        chain = []
        klass = self
        while klass is not None:
            chain.append(klass)
            klass = klass._superclass
        return chain

    def arity(self) -> int:
        initializer = self.find_method("init")
        return initializer.arity() if initializer is not None else 0

    def call(self, runtime: Any, arguments: List[Any]) -> 'LoxInstance':
        instance = LoxInstance(self)
        initializer = self.find_method("init")
        if initializer is not None:
            initializer.bind(instance).call(runtime, arguments)
        return instance

    def __repr__(self) -> str:
        return self._name


class LoxInstance:
    """A runtime object: a reference to its class plus its own fields.

    Fields are created by assignment only. On reads a field masks a method
    of the same name for as long as the field exists.
    """
    def __init__(self, klass: LoxClass):
        self._klass = klass
        self.fields: Dict[str, Any] = {}

    @property
    def klass(self) -> LoxClass:
        return self._klass

    def get(self, name: Union[Name, str]) -> Any:
        key = _key_text(name)
        if key in self.fields:
            return self.fields[key]

        method = self._klass.find_method(key)
        if method is not None:
            return method.bind(self)

        raise UndefinedProperty(name)

    def set(self, name: Union[Name, str], value: Any):
        self.fields[_key_text(name)] = value

    def __str__(self) -> str:
        return f"{self._klass.name} instance"

    def __repr__(self) -> str:
        keys = ', '.join(self.fields.keys())
        return f"<LoxInstance {self._klass.name} fields=[{keys}]>"
