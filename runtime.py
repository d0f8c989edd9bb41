import math
import time

from environment import Environment
from errors import LoxRuntimeError


# ---------- CONTROL SIGNALS ----------
# Statement execution returns None on normal completion, or one of these.

class BreakSignal:
    def __repr__(self):
        return "BREAK"


BREAK = BreakSignal()


class ReturnSignal:
    def __init__(self, value=None):
        self.value = value

    def __repr__(self):
        return f"RETURN({self.value!r})"


# ---------- VALUES ----------

def stringify(value) -> str:
    if value is None:
        return "nil"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, float):
        if value.is_integer():
            # int() drops the sign of negative zero
            if value == 0 and math.copysign(1.0, value) < 0:
                return "-0"
            return str(int(value))
        return repr(value)
    return str(value)


def is_truthy(value) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def is_equal(a, b) -> bool:
    if a is None:
        return b is None
    # bool is an int subclass in Python; keep `true == 1` false
    if type(a) is not type(b):
        return False
    return a == b


class LoxCallable:
    def arity(self) -> int:
        raise NotImplementedError

    def call(self, interpreter, arguments):
        raise NotImplementedError


class NativeFunction(LoxCallable):
    def __init__(self, name: str, arity: int, fn):
        self.name = name
        self._arity = arity
        self.fn = fn

    def arity(self) -> int:
        return self._arity

    def call(self, interpreter, arguments):
        return self.fn(*arguments)

    def __str__(self):
        return "<native fn>"


def clock_native():
    return NativeFunction("clock", 0, time.time)


class LoxFunction(LoxCallable):
    def __init__(self, declaration, closure: Environment, is_initializer: bool = False):
        self.declaration = declaration
        self.closure = closure
        self.is_initializer = is_initializer

    @property
    def name(self) -> str:
        return self.declaration.name.lexeme

    @property
    def is_getter(self) -> bool:
        return self.declaration.params is None

    def arity(self) -> int:
        if self.declaration.params is None:
            return 0
        return len(self.declaration.params)

    def bind(self, instance):
        env = Environment(self.closure)
        env.define("this", instance)
        return LoxFunction(self.declaration, env, self.is_initializer)

    def call(self, interpreter, arguments):
        env = Environment(self.closure)
        for param, value in zip(self.declaration.params or [], arguments):
            env.define(param.lexeme, value)

        signal = interpreter.execute_block(self.declaration.body, env)

        # init always hands back the instance, even after a bare `return;`
        if self.is_initializer:
            return self.closure.get_at(0, "this", self.declaration.name)
        if isinstance(signal, ReturnSignal):
            return signal.value
        return None

    def __str__(self):
        return f"<fn {self.name}>"


class LoxInstance:
    def __init__(self, klass):
        self.klass = klass
        self.fields = {}

    def get(self, name):
        """Field first, then a method bound to this object."""
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]

        if self.klass is not None:
            method = self.klass.find_method(name.lexeme)
            if method is not None:
                return method.bind(self)

        raise LoxRuntimeError(name, f"Undefined property '{name.lexeme}'.")

    def set(self, name, value):
        # fields shadow methods of the same name
        self.fields[name.lexeme] = value

    def __str__(self):
        return f"{self.klass.name} instance"


class LoxClass(LoxInstance, LoxCallable):
    """A class value.

    The class is itself an instance of its metaclass, so `Klass.method`
    finds static methods through the ordinary instance lookup and binds
    `this` to the class value.
    """

    def __init__(self, metaclass, name: str, methods: dict):
        super().__init__(metaclass)
        self.name = name
        self.methods = methods

    def find_method(self, name: str):
        return self.methods.get(name)

    def arity(self) -> int:
        initializer = self.find_method("init")
        if initializer is None:
            return 0
        return initializer.arity()

    def call(self, interpreter, arguments):
        instance = LoxInstance(self)
        initializer = self.find_method("init")
        if initializer is not None:
            initializer.bind(instance).call(interpreter, arguments)
        return instance

    def __str__(self):
        return self.name
