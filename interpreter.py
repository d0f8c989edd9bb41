import sys

from ast_nodes import (
    Literal, Grouping, Unary, Binary, Logical, Conditional, Variable, Assign, Call, Get, Set, This,
    Expression, Print, Var, Block, If, While, Break, Function, Return, Class,
)
from environment import Environment
from errors import ErrorReporter, LoxRuntimeError
from runtime import (
    BREAK, ReturnSignal,
    LoxCallable, LoxFunction, LoxClass, LoxInstance,
    clock_native, is_equal, is_truthy, stringify,
)

FRAMES_PER_CALL = 40


class Interpreter:
    def __init__(self, stdout=None, reporter=None, max_call_depth: int = 1000, trace: bool = False):
        self.stdout = stdout
        self.reporter = reporter or ErrorReporter()

        self.globals = Environment()
        self.environment = self.globals
        self.locals = {}  # node id -> scope distance, filled by the Resolver

        self.globals.define("clock", clock_native())

        self.MAX_CALL_DEPTH = max_call_depth
        self.call_depth = 0

        # each Lox call walks through a few dozen Python frames at most
        sys.setrecursionlimit(max(sys.getrecursionlimit(), max_call_depth * FRAMES_PER_CALL))
        self.trace_enabled = trace

    def _out(self):
        return self.stdout if self.stdout is not None else sys.stdout

    # ---------- ENTRY POINTS ----------
    def interpret(self, statements):
        """Run a statement list. A runtime error stops the rest of the list."""
        try:
            for stmt in statements:
                self.execute(stmt)
        except LoxRuntimeError as e:
            self.reporter.runtime_error(e)
        except RecursionError:
            self.reporter.runtime_error(LoxRuntimeError(None, "Stack overflow."))
        finally:
            # an error may leave us deep inside a call; the next entry starts at the top
            self.environment = self.globals
            self.call_depth = 0

    def interpret_expression(self, expr):
        """REPL mode: evaluate one expression and return its display text, or None on error."""
        try:
            return stringify(self.evaluate(expr))
        except LoxRuntimeError as e:
            self.reporter.runtime_error(e)
        except RecursionError:
            self.reporter.runtime_error(LoxRuntimeError(None, "Stack overflow."))
        finally:
            self.environment = self.globals
            self.call_depth = 0
        return None

    def resolve(self, expr, depth: int):
        self.locals[expr.id] = depth

    # ---------- STATEMENTS ----------
    def execute(self, node):
        if self.trace_enabled:
            print(f"TRACE line {node.line}: {node.__class__.__name__}", file=self._out())

        if isinstance(node, Expression):
            self.evaluate(node.expression)
            return None

        if isinstance(node, Print):
            value = self.evaluate(node.expression)
            print(stringify(value), file=self._out())
            return None

        if isinstance(node, Var):
            value = None
            if node.initializer is not None:
                value = self.evaluate(node.initializer)
            self.environment.define(node.name.lexeme, value)
            return None

        if isinstance(node, Block):
            return self.execute_block(node.statements, Environment(self.environment))

        if isinstance(node, If):
            if is_truthy(self.evaluate(node.condition)):
                return self.execute(node.then_branch)
            if node.else_branch is not None:
                return self.execute(node.else_branch)
            return None

        if isinstance(node, While):
            while is_truthy(self.evaluate(node.condition)):
                signal = self.execute(node.body)
                if signal is BREAK:
                    break
                if signal is not None:
                    return signal
            return None

        if isinstance(node, Break):
            return BREAK

        if isinstance(node, Return):
            value = None
            if node.value is not None:
                value = self.evaluate(node.value)
            return ReturnSignal(value)

        if isinstance(node, Function):
            function = LoxFunction(node, self.environment)
            self.environment.define(node.name.lexeme, function)
            return None

        if isinstance(node, Class):
            self.execute_class(node)
            return None

        raise Exception(f"Unknown statement node: {node.__class__.__name__}")

    def execute_block(self, statements, environment):
        """Run statements in `environment`, always restoring the previous one.

        Returns the first non-normal completion (break or return), if any.
        """
        previous = self.environment
        try:
            self.environment = environment
            for stmt in statements:
                signal = self.execute(stmt)
                if signal is not None:
                    return signal
            return None
        finally:
            self.environment = previous

    def execute_class(self, node):
        # predeclare so methods can refer to the class by name
        self.environment.define(node.name.lexeme, None)

        methods = {}
        for method in node.methods:
            is_init = method.name.lexeme == "init"
            methods[method.name.lexeme] = LoxFunction(method, self.environment, is_init)

        static_methods = {}
        for method in node.static_methods:
            static_methods[method.name.lexeme] = LoxFunction(method, self.environment)

        metaclass = LoxClass(None, f"{node.name.lexeme} metaclass", static_methods)
        klass = LoxClass(metaclass, node.name.lexeme, methods)
        self.environment.assign(node.name, klass)

    # ---------- EXPRESSIONS ----------
    def evaluate(self, node):
        if isinstance(node, Literal):
            return node.value

        if isinstance(node, Grouping):
            return self.evaluate(node.expression)

        if isinstance(node, Unary):
            return self.eval_unary(node)

        if isinstance(node, Binary):
            return self.eval_binary(node)

        if isinstance(node, Logical):
            left = self.evaluate(node.left)
            if node.op.type == "OR":
                if is_truthy(left):
                    return left
            elif not is_truthy(left):
                return left
            return self.evaluate(node.right)

        if isinstance(node, Conditional):
            if is_truthy(self.evaluate(node.condition)):
                return self.evaluate(node.then_expr)
            return self.evaluate(node.else_expr)

        if isinstance(node, Variable):
            return self.look_up_variable(node.name, node)

        if isinstance(node, Assign):
            value = self.evaluate(node.value)
            distance = self.locals.get(node.id)
            if distance is not None:
                self.environment.assign_at(distance, node.name, value)
            else:
                self.globals.assign(node.name, value)
            return value

        if isinstance(node, This):
            return self.look_up_variable(node.keyword, node)

        if isinstance(node, Call):
            return self.eval_call(node)

        if isinstance(node, Get):
            obj = self.evaluate(node.obj)
            if not isinstance(obj, LoxInstance):
                raise LoxRuntimeError(node.name, "Only instances have properties.")
            value = obj.get(node.name)
            if isinstance(value, LoxFunction) and value.is_getter:
                return self.call_function(value, [], node.name)
            return value

        if isinstance(node, Set):
            obj = self.evaluate(node.obj)
            if not isinstance(obj, LoxInstance):
                raise LoxRuntimeError(node.name, "Only instances have fields.")
            value = self.evaluate(node.value)
            obj.set(node.name, value)
            return value

        raise Exception(f"Unknown expression node: {node.__class__.__name__}")

    def look_up_variable(self, name, node):
        distance = self.locals.get(node.id)
        if distance is not None:
            return self.environment.get_at(distance, name.lexeme, name)
        return self.globals.get(name)

    def eval_unary(self, node):
        right = self.evaluate(node.right)
        op = node.op

        if op.type == "BANG":
            return not is_truthy(right)
        if op.type == "MINUS":
            if not _is_number(right):
                raise LoxRuntimeError(op, "Operand of '-' must be a number.")
            return -right

        raise LoxRuntimeError(op, f"Unknown unary operator '{op.lexeme}'.")

    def eval_binary(self, node):
        left = self.evaluate(node.left)
        right = self.evaluate(node.right)
        op = node.op

        if op.type == "COMMA":
            return right

        if op.type == "EQUAL_EQUAL":
            return is_equal(left, right)
        if op.type == "BANG_EQUAL":
            return not is_equal(left, right)

        if op.type == "PLUS":
            if _is_number(left) and _is_number(right):
                return left + right
            if isinstance(left, str) or isinstance(right, str):
                return stringify(left) + stringify(right)
            raise LoxRuntimeError(op, "Operands of '+' must be two numbers or at least one string.")

        if not (_is_number(left) and _is_number(right)):
            raise LoxRuntimeError(op, f"Operands of '{op.lexeme}' must be numbers.")

        if op.type == "MINUS":
            return left - right
        if op.type == "STAR":
            return left * right
        if op.type == "SLASH":
            if right == 0:
                raise LoxRuntimeError(op, "Division by zero.")
            return left / right
        if op.type == "GREATER":
            return left > right
        if op.type == "GREATER_EQUAL":
            return left >= right
        if op.type == "LESS":
            return left < right
        if op.type == "LESS_EQUAL":
            return left <= right

        raise LoxRuntimeError(op, f"Unknown binary operator '{op.lexeme}'.")

    def eval_call(self, node):
        callee = self.evaluate(node.callee)

        arguments = []
        for argument in node.arguments:
            arguments.append(self.evaluate(argument))

        if not isinstance(callee, LoxCallable):
            raise LoxRuntimeError(node.paren, "Can only call functions and classes.")

        if len(arguments) != callee.arity():
            raise LoxRuntimeError(node.paren, f"Expected {callee.arity()} arguments but got {len(arguments)}.")

        return self.call_function(callee, arguments, node.paren)

    def call_function(self, callee, arguments, token):
        if self.call_depth >= self.MAX_CALL_DEPTH:
            raise LoxRuntimeError(token, "Stack overflow.")

        self.call_depth += 1
        try:
            return callee.call(self, arguments)
        finally:
            self.call_depth -= 1


def _is_number(value) -> bool:
    # bool is an int subclass, and Lox numbers are always floats
    return isinstance(value, float)
