import itertools

# Nodes compare by identity. The resolver keys its distance table by `id`,
# so two identical-looking expressions at different places stay distinct.
_node_ids = itertools.count(1)


class ASTNode:
    # Source line (1-based) of the token that anchors the node, when known.
    line: int | None = None

    def __init__(self):
        self.id = next(_node_ids)


# ---------- EXPRESSIONS ----------

class Expr(ASTNode):
    pass


class Literal(Expr):
    def __init__(self, value):
        super().__init__()
        self.value = value  # None, bool, float or str


class Grouping(Expr):
    def __init__(self, expression):
        super().__init__()
        self.expression = expression


class Unary(Expr):
    def __init__(self, op, right):
        super().__init__()
        self.op = op        # Token: BANG or MINUS
        self.right = right
        self.line = op.line


class Binary(Expr):
    def __init__(self, left, op, right):
        super().__init__()
        self.left = left
        self.op = op        # Token; COMMA is the sequencing operator
        self.right = right
        self.line = op.line


class Logical(Expr):
    def __init__(self, left, op, right):
        super().__init__()
        self.left = left
        self.op = op        # Token: AND or OR
        self.right = right
        self.line = op.line


class Conditional(Expr):
    def __init__(self, condition, then_expr, else_expr):
        super().__init__()
        self.condition = condition
        self.then_expr = then_expr
        self.else_expr = else_expr


class Variable(Expr):
    def __init__(self, name):
        super().__init__()
        self.name = name
        self.line = name.line


class Assign(Expr):
    def __init__(self, name, value):
        super().__init__()
        self.name = name
        self.value = value
        self.line = name.line


class Call(Expr):
    def __init__(self, callee, paren, arguments):
        super().__init__()
        self.callee = callee
        self.paren = paren          # closing ')' token, used for error lines
        self.arguments = arguments
        self.line = paren.line


class Get(Expr):
    def __init__(self, obj, name):
        super().__init__()
        self.obj = obj
        self.name = name
        self.line = name.line


class Set(Expr):
    def __init__(self, obj, name, value):
        super().__init__()
        self.obj = obj
        self.name = name
        self.value = value
        self.line = name.line


class This(Expr):
    def __init__(self, keyword):
        super().__init__()
        self.keyword = keyword
        self.line = keyword.line


# ---------- STATEMENTS ----------

class Stmt(ASTNode):
    pass


class Expression(Stmt):
    def __init__(self, expression):
        super().__init__()
        self.expression = expression


class Print(Stmt):
    def __init__(self, expression):
        super().__init__()
        self.expression = expression


class Var(Stmt):
    def __init__(self, name, initializer=None):
        super().__init__()
        self.name = name
        self.initializer = initializer  # expr | None
        self.line = name.line


class Block(Stmt):
    def __init__(self, statements):
        super().__init__()
        self.statements = statements


class If(Stmt):
    def __init__(self, condition, then_branch, else_branch=None):
        super().__init__()
        self.condition = condition
        self.then_branch = then_branch
        self.else_branch = else_branch


class While(Stmt):
    def __init__(self, condition, body):
        super().__init__()
        self.condition = condition
        self.body = body


class Break(Stmt):
    def __init__(self, keyword):
        super().__init__()
        self.keyword = keyword
        self.line = keyword.line


class Function(Stmt):
    def __init__(self, name, params, body):
        super().__init__()
        self.name = name
        self.params = params  # list[Token], or None for a getter
        self.body = body      # list[Stmt]
        self.line = name.line


class Return(Stmt):
    def __init__(self, keyword, value=None):
        super().__init__()
        self.keyword = keyword
        self.value = value  # expr | None
        self.line = keyword.line


class Class(Stmt):
    def __init__(self, name, methods, static_methods):
        super().__init__()
        self.name = name
        self.methods = methods                  # list[Function]
        self.static_methods = static_methods    # list[Function]
        self.line = name.line
