import pytest
from lox.lox_datatypes import (
    Scope, Name, FunctionDeclaration, LoxFunction, NativeFunction,
    LoxClass, LoxInstance, LoxRuntimeError, UndefinedProperty, Return
)
from lox.lox_runtime import Runtime


def _method(name, body=None, params=()):
    return FunctionDeclaration(name, list(params), body or (lambda rt, scope: None))


# --- Scope Tests ---

def test_scope_init():
    parent = Scope()
    child = Scope(parent=parent)
    assert child.parent is parent
    assert not child.bindings
    assert Scope().parent is None

def test_scope_define_and_lookup():
    scope = Scope()
    scope.define("a", 1)
    scope[Name("b")] = 2
    assert scope["a"] == 1
    assert scope["b"] == 2
    with pytest.raises(KeyError):
        _ = scope["c"]

def test_scope_parent_chain_lookup():
    parent = Scope()
    parent["a"] = 100
    parent["b"] = 200
    child = Scope(parent=parent)
    child["b"] = 20  # shadow parent

    assert child["a"] == 100
    assert child["b"] == 20
    assert parent["b"] == 200

def test_scope_assign_writes_to_owner():
    parent = Scope()
    parent["a"] = 1
    child = Scope(parent=parent)
    child.assign("a", 2)
    assert parent["a"] == 2
    assert "a" not in child.keys()
    with pytest.raises(KeyError):
        child.assign("missing", 0)

def test_scope_contains_and_get():
    parent = Scope()
    parent["a"] = 1
    child = Scope(parent=parent)
    assert "a" in child
    assert Name("a") in child
    assert "b" not in child
    assert 123 not in child
    assert child.get("a") == 1
    assert child.get("b", "default") == "default"
    assert child.get(123, "default") == "default"

def test_scope_find_owner():
    parent = Scope()
    parent["a"] = 1
    child = Scope(parent=parent)
    child["b"] = 2
    assert child.find_owner("a") is parent
    assert child.find_owner("b") is child
    assert child.find_owner("c") is None


# --- Name Tests ---

def test_name_equality_ignores_location():
    assert Name("x", {"line": 1}) == Name("x", {"line": 9})
    assert hash(Name("x")) == hash("x")
    assert Name("x") != "x"


# --- LoxFunction Tests ---

def test_bind_adds_one_scope_with_this():
    closure = Scope()
    closure["outer"] = 1
    fn = LoxFunction(_method("m"), closure)
    instance = LoxInstance(LoxClass("C"))

    bound = fn.bind(instance)
    assert bound is not fn
    assert bound.declaration is fn.declaration
    assert bound.closure.parent is closure
    assert list(bound.closure.keys()) == ["this"]
    assert bound.closure["this"] is instance
    assert bound.closure["outer"] == 1
    assert "this" not in fn.closure

def test_bind_shares_outer_scope_with_original():
    closure = Scope()
    closure["counter"] = 0
    fn = LoxFunction(_method("m"), closure)
    bound = fn.bind(LoxInstance(LoxClass("C")))

    bound.closure.assign("counter", 5)
    assert closure["counter"] == 5
    assert fn.closure["counter"] == 5

def test_bind_same_function_to_many_instances():
    fn = LoxFunction(_method("m"), Scope())
    klass = LoxClass("C")
    a, b = LoxInstance(klass), LoxInstance(klass)
    assert fn.bind(a).closure["this"] is a
    assert fn.bind(b).closure["this"] is b

def test_call_binds_parameters_and_unwraps_return():
    def body(rt, scope):
        raise Return(scope["a"] + scope["b"])

    fn = LoxFunction(_method("add", body, ["a", "b"]), Scope())
    assert fn.arity() == 2
    assert fn.call(Runtime(), [2, 3]) == 5

def test_call_without_return_yields_body_result():
    fn = LoxFunction(_method("noop"), Scope())
    assert fn.call(Runtime(), []) is None

def test_initializer_returns_this_after_early_return():
    def body(rt, scope):
        raise Return(None)

    init = LoxFunction(_method("init", body), Scope(), is_initializer=True)
    instance = LoxInstance(LoxClass("C"))
    assert init.bind(instance).call(Runtime(), []) is instance

def test_native_function_call():
    native = NativeFunction("twice", 1, lambda x: x * 2)
    assert native.arity() == 1
    assert native.call(Runtime(), [21]) == 42


# --- LoxClass Tests ---

def test_class_method_table_is_read_only():
    m = LoxFunction(_method("m"), Scope())
    klass = LoxClass("C", None, {"m": m})
    with pytest.raises(TypeError):
        klass.methods["n"] = m

def test_class_copies_method_table():
    table = {"m": LoxFunction(_method("m"), Scope())}
    klass = LoxClass("C", None, table)
    table["n"] = table["m"]
    assert klass.find_method("n") is None

def test_find_method_missing_returns_none():
    assert LoxClass("C").find_method("nope") is None

def test_find_method_walks_superclass_chain():
    m = LoxFunction(_method("m"), Scope())
    base = LoxClass("Base", None, {"m": m})
    middle = LoxClass("Middle", base)
    leaf = LoxClass("Leaf", middle)
    assert leaf.find_method("m") is m
    assert leaf.find_method(Name("m")) is m
    assert leaf.mro() == [leaf, middle, base]

def test_class_arity_follows_initializer():
    init = LoxFunction(_method("init", params=["a", "b"]), Scope(), is_initializer=True)
    assert LoxClass("C", None, {"init": init}).arity() == 2
    assert LoxClass("D").arity() == 0
    assert LoxClass("E", LoxClass("C", None, {"init": init})).arity() == 2

def test_class_call_creates_instance_and_runs_init():
    def body(rt, scope):
        scope["this"].set("x", scope["x"])

    init = LoxFunction(_method("init", body, ["x"]), Scope(), is_initializer=True)
    klass = LoxClass("Point", None, {"init": init})
    p = klass.call(Runtime(), [7])
    assert isinstance(p, LoxInstance)
    assert p.klass is klass
    assert p.fields == {"x": 7}


# --- LoxInstance Tests ---

def test_instance_starts_with_no_fields():
    assert LoxInstance(LoxClass("C")).fields == {}

def test_instance_get_accepts_name_or_str():
    i = LoxInstance(LoxClass("C"))
    i.set(Name("x"), 1)
    assert i.get("x") == 1
    assert i.get(Name("x")) == 1

def test_undefined_property_carries_name_and_location():
    i = LoxInstance(LoxClass("C"))
    name = Name("missing", {"line": 4, "col": 7})
    with pytest.raises(UndefinedProperty) as exc:
        i.get(name)
    err = exc.value
    assert isinstance(err, LoxRuntimeError)
    assert err.key == "missing"
    assert err.name is name
    assert err.line == 4
    assert str(err) == "Undefined property 'missing'."

def test_instance_equality_is_identity():
    klass = LoxClass("C")
    a, b = LoxInstance(klass), LoxInstance(klass)
    a.set("x", 1)
    b.set("x", 1)
    assert a != b
    assert a == a
    assert len({a, b}) == 2
