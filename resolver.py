from ast_nodes import (
    Literal, Grouping, Unary, Binary, Logical, Conditional, Variable, Assign, Call, Get, Set, This,
    Stmt, Expression, Print, Var, Block, If, While, Break, Function, Return, Class,
)
from errors import ErrorReporter

# local variable states, in the order a well-behaved local goes through them
DECLARED = "DECLARED"
DEFINED = "DEFINED"
READ = "READ"


class Local:
    def __init__(self, token, state):
        self.token = token
        self.state = state


class Resolver:
    """Static pass computing how many scopes out each local reference lives.

    Distances go into the interpreter's side table. Names never found in a
    tracked scope are globals and stay out of the table. Nothing is evaluated.
    """

    def __init__(self, interpreter, reporter=None):
        self.interpreter = interpreter
        self.reporter = reporter or ErrorReporter()
        self.scopes = []  # list[dict[str, Local]], innermost last
        self.current_function = "NONE"  # NONE, FUNCTION, METHOD, INITIALIZER, STATIC
        self.current_class = "NONE"     # NONE, CLASS

    def error(self, token, message):
        self.reporter.resolve_error(token, message)

    # ---------- SCOPES ----------
    def begin_scope(self):
        self.scopes.append({})

    def end_scope(self):
        scope = self.scopes.pop()
        for local in scope.values():
            if local.state == DEFINED:
                self.error(local.token, "Local variable is not used.")

    def declare(self, name):
        if not self.scopes:
            return
        scope = self.scopes[-1]
        if name.lexeme in scope:
            self.error(name, "Already a variable with this name in this scope.")
        scope[name.lexeme] = Local(name, DECLARED)

    def define(self, name):
        if not self.scopes:
            return
        local = self.scopes[-1].get(name.lexeme)
        if local is None:
            self.scopes[-1][name.lexeme] = Local(name, DEFINED)
        elif local.state == DECLARED:
            local.state = DEFINED

    def resolve_local(self, expr, name, is_read: bool):
        for i in range(len(self.scopes) - 1, -1, -1):
            local = self.scopes[i].get(name.lexeme)
            if local is None:
                continue
            self.interpreter.resolve(expr, len(self.scopes) - 1 - i)
            if is_read:
                local.state = READ
            return
        # not found: global, looked up dynamically at run time

    def resolve_function(self, function, function_type):
        enclosing_function = self.current_function
        self.current_function = function_type

        self.begin_scope()
        for param in function.params or []:
            self.declare(param)
            self.define(param)
        self.resolve(function.body)
        self.end_scope()

        self.current_function = enclosing_function

    # ---------- ENTRY ----------
    def resolve(self, node):
        if isinstance(node, list):
            for stmt in node:
                self.resolve_stmt(stmt)
            return
        if isinstance(node, Stmt):
            self.resolve_stmt(node)
            return
        self.resolve_expr(node)

    # ---------- STATEMENTS ----------
    def resolve_stmt(self, node):
        if isinstance(node, Block):
            self.begin_scope()
            self.resolve(node.statements)
            self.end_scope()
            return

        if isinstance(node, Var):
            self.declare(node.name)
            if node.initializer is not None:
                self.resolve_expr(node.initializer)
            self.define(node.name)
            return

        if isinstance(node, Function):
            # defined before the body so the function can call itself
            self.declare(node.name)
            self.define(node.name)
            self.resolve_function(node, "FUNCTION")
            return

        if isinstance(node, Class):
            self.resolve_class(node)
            return

        if isinstance(node, (Expression, Print)):
            self.resolve_expr(node.expression)
            return

        if isinstance(node, If):
            self.resolve_expr(node.condition)
            self.resolve_stmt(node.then_branch)
            if node.else_branch is not None:
                self.resolve_stmt(node.else_branch)
            return

        if isinstance(node, While):
            self.resolve_expr(node.condition)
            self.resolve_stmt(node.body)
            return

        if isinstance(node, Break):
            # placement is checked by the parser
            return

        if isinstance(node, Return):
            if self.current_function == "NONE":
                self.error(node.keyword, "Can't return from top-level code.")
            if node.value is not None:
                if self.current_function == "INITIALIZER":
                    self.error(node.keyword, "Can't return a value from an initializer.")
                self.resolve_expr(node.value)
            return

        raise Exception(f"Unknown statement node: {node.__class__.__name__}")

    def resolve_class(self, node):
        enclosing_class = self.current_class
        self.current_class = "CLASS"

        self.declare(node.name)
        self.define(node.name)

        # instance methods see `this` as the instance
        self.begin_scope()
        self.scopes[-1]["this"] = Local(node.name, READ)
        for method in node.methods:
            function_type = "INITIALIZER" if method.name.lexeme == "init" else "METHOD"
            self.resolve_function(method, function_type)
        self.end_scope()

        # static methods get their own `this` scope, bound to the class value
        self.begin_scope()
        self.scopes[-1]["this"] = Local(node.name, READ)
        for method in node.static_methods:
            self.resolve_function(method, "STATIC")
        self.end_scope()

        self.current_class = enclosing_class

    # ---------- EXPRESSIONS ----------
    def resolve_expr(self, node):
        if isinstance(node, Variable):
            if self.scopes:
                local = self.scopes[-1].get(node.name.lexeme)
                if local is not None and local.state == DECLARED:
                    self.error(node.name, "Can't read local variable in its own initializer.")
            self.resolve_local(node, node.name, True)
            return

        if isinstance(node, Assign):
            self.resolve_expr(node.value)
            self.resolve_local(node, node.name, False)
            return

        if isinstance(node, This):
            if self.current_class == "NONE":
                self.error(node.keyword, "Can't use 'this' outside of a class.")
                return
            self.resolve_local(node, node.keyword, True)
            return

        if isinstance(node, (Binary, Logical)):
            self.resolve_expr(node.left)
            self.resolve_expr(node.right)
            return

        if isinstance(node, Unary):
            self.resolve_expr(node.right)
            return

        if isinstance(node, Grouping):
            self.resolve_expr(node.expression)
            return

        if isinstance(node, Conditional):
            self.resolve_expr(node.condition)
            self.resolve_expr(node.then_expr)
            self.resolve_expr(node.else_expr)
            return

        if isinstance(node, Call):
            self.resolve_expr(node.callee)
            for argument in node.arguments:
                self.resolve_expr(argument)
            return

        if isinstance(node, Get):
            # properties are looked up dynamically
            self.resolve_expr(node.obj)
            return

        if isinstance(node, Set):
            self.resolve_expr(node.value)
            self.resolve_expr(node.obj)
            return

        if isinstance(node, Literal):
            return

        raise Exception(f"Unknown expression node: {node.__class__.__name__}")
