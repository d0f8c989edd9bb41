from errors import LoxRuntimeError


class Environment:
    """One scope frame: a name -> value mapping linked to its enclosing frame.

    Frames are shared by reference. A closure keeps the frame it was created
    in alive, and every closure over the same frame sees the same values.
    """

    def __init__(self, enclosing=None):
        self.enclosing = enclosing
        self.values = {}

    def define(self, name: str, value):
        # redefinition is allowed; globals may be redeclared
        self.values[name] = value

    def ancestor(self, distance: int):
        env = self
        for _ in range(distance):
            if env.enclosing is None:
                raise Exception(f"Scope chain shorter than resolved distance {distance}")
            env = env.enclosing
        return env

    def get(self, name):
        if name.lexeme in self.values:
            return self.values[name.lexeme]
        if self.enclosing is not None:
            return self.enclosing.get(name)
        raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

    def assign(self, name, value):
        if name.lexeme in self.values:
            self.values[name.lexeme] = value
            return
        if self.enclosing is not None:
            self.enclosing.assign(name, value)
            return
        raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

    def get_at(self, distance: int, name: str, token=None):
        values = self.ancestor(distance).values
        if name not in values:
            raise LoxRuntimeError(token, f"Undefined variable '{name}'.")
        return values[name]

    def assign_at(self, distance: int, name, value):
        self.ancestor(distance).values[name.lexeme] = value

    def __repr__(self):
        depth = 0
        env = self.enclosing
        while env is not None:
            depth += 1
            env = env.enclosing
        return f"<Environment depth={depth} names={sorted(self.values)}>"
