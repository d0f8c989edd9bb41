from ast_nodes import (
    Literal, Grouping, Unary, Binary, Logical, Conditional, Variable, Assign, Call, Get, Set, This,
    Expression, Print, Var, Block, If, While, Break, Function, Return, Class,
)
from errors import ErrorReporter
from lexer import Token

MAX_ARGS = 255

# tokens that start a new declaration or statement; used to resynchronize after an error
SYNC_TOKENS = ("CLASS", "FUN", "VAR", "FOR", "IF", "WHILE", "PRINT", "RETURN")


class ParseError(Exception):
    """Unwinds to the nearest declaration so the parser can resynchronize."""


class Parser:
    def __init__(self, tokens, reporter=None):
        self.tokens = tokens
        self.reporter = reporter or ErrorReporter()
        self.current = 0
        self.loop_depth = 0

        # REPL mode: a lone trailing expression without ';' is allowed
        self.allow_expression = False
        self.found_expression = False

    # ---------- TOKEN HELPERS ----------
    @property
    def current_token(self):
        return self.tokens[self.current]

    def previous(self):
        return self.tokens[self.current - 1]

    def is_at_end(self):
        return self.current_token.type == "EOF"

    def check(self, token_type):
        if self.is_at_end():
            return False
        return self.current_token.type == token_type

    def advance(self):
        if not self.is_at_end():
            self.current += 1
        return self.previous()

    def match(self, *token_types):
        for token_type in token_types:
            if self.check(token_type):
                self.advance()
                return True
        return False

    # move to next token, but only if it matches what we expect
    def eat(self, token_type, message):
        if self.check(token_type):
            return self.advance()
        raise self.error(self.current_token, message)

    def error(self, token, message):
        # report now; the caller decides whether to raise the returned ParseError
        self.reporter.token_error(token, message)
        return ParseError(message)

    def error_here(self, message):
        raise self.error(self.current_token, message)

    def synchronize(self):
        self.advance()
        while not self.is_at_end():
            if self.previous().type == "SEMICOLON":
                return
            if self.current_token.type in SYNC_TOKENS:
                return
            self.advance()

    # ---------- TOP LEVEL ----------
    def parse(self):
        statements = []
        while not self.is_at_end():
            stmt = self.declaration()
            if stmt is not None:
                statements.append(stmt)
        return statements

    def parse_repl(self):
        """Parse one REPL entry.

        Returns the bare expression when the whole input is a single
        expression with no terminating ';', otherwise a statement list.
        """
        self.allow_expression = True
        statements = []
        while not self.is_at_end():
            stmt = self.declaration()
            if stmt is not None:
                statements.append(stmt)

            if self.found_expression:
                if isinstance(stmt, Expression) and len(statements) == 1:
                    return stmt.expression
                # the unterminated expression sat inside another statement
                if stmt is not None:
                    self.error(self.current_token, "Expect ';' after expression.")
                return statements

            self.allow_expression = False
        return statements

    # ---------- DECLARATIONS ----------
    # declaration -> classDecl | funDecl | varDecl | statement
    def declaration(self):
        try:
            if self.match("CLASS"):
                return self.class_declaration()
            if self.match("FUN"):
                return self.function("function")
            if self.match("VAR"):
                return self.var_declaration()
            return self.statement()
        except ParseError:
            self.synchronize()
            return None

    # classDecl -> "class" IDENTIFIER "{" ( "class"? method )* "}"
    def class_declaration(self):
        name = self.eat("IDENTIFIER", "Expect class name.")
        self.eat("LEFT_BRACE", "Expect '{' before class body.")

        methods = []
        static_methods = []
        while not self.check("RIGHT_BRACE") and not self.is_at_end():
            if self.match("CLASS"):
                static_methods.append(self.function("method"))
            else:
                methods.append(self.function("method"))

        self.eat("RIGHT_BRACE", "Expect '}' after class body.")
        return Class(name, methods, static_methods)

    # function -> IDENTIFIER ( "(" parameters? ")" )? block
    # Only methods may omit the parameter list; that makes them getters.
    def function(self, kind):
        name = self.eat("IDENTIFIER", f"Expect {kind} name.")

        params = None
        if kind != "method" or self.check("LEFT_PAREN"):
            self.eat("LEFT_PAREN", f"Expect '(' after {kind} name.")
            params = []
            if not self.check("RIGHT_PAREN"):
                while True:
                    if len(params) >= MAX_ARGS:
                        self.error(self.current_token, f"Can't have more than {MAX_ARGS} parameters.")
                    params.append(self.eat("IDENTIFIER", "Expect parameter name."))
                    if not self.match("COMMA"):
                        break
            self.eat("RIGHT_PAREN", "Expect ')' after parameters.")

        self.eat("LEFT_BRACE", f"Expect '{{' before {kind} body.")

        # break inside a function body never targets a loop outside it
        saved_loop_depth = self.loop_depth
        self.loop_depth = 0
        try:
            body = self.block()
        finally:
            self.loop_depth = saved_loop_depth

        return Function(name, params, body)

    # varDecl -> "var" IDENTIFIER ( "=" expression )? ";"
    def var_declaration(self):
        name = self.eat("IDENTIFIER", "Expect variable name.")

        initializer = None
        if self.match("EQUAL"):
            initializer = self.expr()

        self.eat("SEMICOLON", "Expect ';' after variable declaration.")
        return Var(name, initializer)

    # ---------- STATEMENTS ----------
    def statement(self):
        if self.match("PRINT"):
            return self.print_statement()
        if self.match("IF"):
            return self.if_statement()
        if self.match("WHILE"):
            return self.while_statement()
        if self.match("FOR"):
            return self.for_statement()
        if self.match("BREAK"):
            return self.break_statement()
        if self.match("RETURN"):
            return self.return_statement()
        if self.match("LEFT_BRACE"):
            tok = self.previous()
            node = Block(self.block())
            node.line = tok.line
            return node
        return self.expression_statement()

    # block -> "{" declaration* "}"
    def block(self):
        statements = []
        while not self.check("RIGHT_BRACE") and not self.is_at_end():
            stmt = self.declaration()
            if stmt is not None:
                statements.append(stmt)

        self.eat("RIGHT_BRACE", "Expect '}' after block.")
        return statements

    def print_statement(self):
        tok = self.previous()
        value = self.expr()
        self.eat("SEMICOLON", "Expect ';' after value.")
        node = Print(value)
        node.line = tok.line
        return node

    def expression_statement(self):
        tok = self.current_token
        expr = self.expr()

        if self.allow_expression and self.is_at_end():
            self.found_expression = True
        else:
            self.eat("SEMICOLON", "Expect ';' after expression.")

        node = Expression(expr)
        node.line = tok.line
        return node

    # ifStmt -> "if" "(" expression ")" statement ( "else" statement )?
    def if_statement(self):
        tok = self.previous()
        self.eat("LEFT_PAREN", "Expect '(' after 'if'.")
        condition = self.expr()
        self.eat("RIGHT_PAREN", "Expect ')' after if condition.")

        then_branch = self.statement()
        else_branch = None
        if self.match("ELSE"):
            else_branch = self.statement()

        node = If(condition, then_branch, else_branch)
        node.line = tok.line
        return node

    # whileStmt -> "while" "(" expression ")" statement
    def while_statement(self):
        tok = self.previous()
        self.eat("LEFT_PAREN", "Expect '(' after 'while'.")
        condition = self.expr()
        self.eat("RIGHT_PAREN", "Expect ')' after condition.")

        self.loop_depth += 1
        try:
            body = self.statement()
        finally:
            self.loop_depth -= 1

        node = While(condition, body)
        node.line = tok.line
        return node

    # forStmt -> "for" "(" ( varDecl | exprStmt | ";" ) expression? ";" expression? ")" statement
    # Desugared here into blocks and a while loop; there is no For node.
    def for_statement(self):
        tok = self.previous()
        self.eat("LEFT_PAREN", "Expect '(' after 'for'.")

        if self.match("SEMICOLON"):
            initializer = None
        elif self.match("VAR"):
            initializer = self.var_declaration()
        else:
            initializer = self.expression_statement()

        condition = None
        if not self.check("SEMICOLON"):
            condition = self.expr()
        self.eat("SEMICOLON", "Expect ';' after loop condition.")

        increment = None
        if not self.check("RIGHT_PAREN"):
            increment = self.expr()
        self.eat("RIGHT_PAREN", "Expect ')' after for clauses.")

        self.loop_depth += 1
        try:
            body = self.statement()
        finally:
            self.loop_depth -= 1

        if increment is not None:
            incr_stmt = Expression(increment)
            incr_stmt.line = increment.line
            body = Block([body, incr_stmt])
            body.line = tok.line
        if condition is None:
            condition = Literal(True)
            condition.line = tok.line
        body = While(condition, body)
        body.line = tok.line
        if initializer is not None:
            body = Block([initializer, body])
            body.line = tok.line
        return body

    def break_statement(self):
        keyword = self.previous()
        if self.loop_depth == 0:
            self.error(keyword, "Must be inside a loop to use 'break'.")
        self.eat("SEMICOLON", "Expect ';' after 'break'.")
        return Break(keyword)

    # returnStmt -> "return" expression? ";"
    def return_statement(self):
        keyword = self.previous()
        value = None
        if not self.check("SEMICOLON"):
            value = self.expr()
        self.eat("SEMICOLON", "Expect ';' after return value.")
        return Return(keyword, value)

    # ---------- EXPRESSIONS ----------
    # expr -> comma
    def expr(self):
        return self.comma()

    # comma -> assignment ( "," assignment )*
    def comma(self):
        node = self.assignment()
        while self.match("COMMA"):
            op = self.previous()
            right = self.assignment()
            node = Binary(node, op, right)
        return node

    # assignment -> ( call "." )? IDENTIFIER "=" assignment | conditional
    def assignment(self):
        node = self.conditional()

        if self.match("EQUAL"):
            equals = self.previous()
            value = self.assignment()

            if isinstance(node, Variable):
                return Assign(node.name, value)
            if isinstance(node, Get):
                return Set(node.obj, node.name, value)

            # reported, not raised: the statement is still well formed
            self.error(equals, "Invalid assignment target.")

        return node

    # conditional -> or_expr ( "?" expression ":" conditional )?
    def conditional(self):
        node = self.or_expr()
        if self.match("QUESTION"):
            then_expr = self.expr()
            self.eat("COLON", "Expect ':' after then branch of conditional expression.")
            else_expr = self.conditional()
            node = Conditional(node, then_expr, else_expr)
            node.line = then_expr.line
        return node

    # or_expr -> and_expr ( "or" and_expr )*
    def or_expr(self):
        node = self.and_expr()
        while self.match("OR"):
            op = self.previous()
            right = self.and_expr()
            node = Logical(node, op, right)
        return node

    # and_expr -> equality ( "and" equality )*
    def and_expr(self):
        node = self.equality()
        while self.match("AND"):
            op = self.previous()
            right = self.equality()
            node = Logical(node, op, right)
        return node

    # equality -> comparison ( ( "!=" | "==" ) comparison )*
    def equality(self):
        node = self.comparison()
        while self.match("BANG_EQUAL", "EQUAL_EQUAL"):
            op = self.previous()
            right = self.comparison()
            node = Binary(node, op, right)
        return node

    # comparison -> term ( ( ">" | ">=" | "<" | "<=" ) term )*
    def comparison(self):
        node = self.term()
        while self.match("GREATER", "GREATER_EQUAL", "LESS", "LESS_EQUAL"):
            op = self.previous()
            right = self.term()
            node = Binary(node, op, right)
        return node

    # term -> factor ( ( "+" | "-" ) factor )*
    def term(self):
        node = self.factor()
        while self.match("PLUS", "MINUS"):
            op = self.previous()
            right = self.factor()
            node = Binary(node, op, right)
        return node

    # factor -> unary ( ( "*" | "/" ) unary )*
    def factor(self):
        node = self.unary()
        while self.match("STAR", "SLASH"):
            op = self.previous()
            right = self.unary()
            node = Binary(node, op, right)
        return node

    # unary -> ( "!" | "-" ) unary | call
    def unary(self):
        if self.match("BANG", "MINUS"):
            op = self.previous()
            return Unary(op, self.unary())
        return self.call()

    # call -> primary ( "(" arguments? ")" | "." IDENTIFIER )*
    def call(self):
        node = self.primary()
        while True:
            if self.match("LEFT_PAREN"):
                node = self.finish_call(node)
            elif self.match("DOT"):
                name = self.eat("IDENTIFIER", "Expect property name after '.'.")
                node = Get(node, name)
            else:
                break
        return node

    # arguments -> assignment ( "," assignment )*
    def finish_call(self, callee):
        arguments = []
        if not self.check("RIGHT_PAREN"):
            while True:
                if len(arguments) >= MAX_ARGS:
                    self.error(self.current_token, f"Can't have more than {MAX_ARGS} arguments.")
                arguments.append(self.assignment())
                if not self.match("COMMA"):
                    break

        paren = self.eat("RIGHT_PAREN", "Expect ')' after arguments.")
        return Call(callee, paren, arguments)

    # primary -> NUMBER | STRING | "true" | "false" | "nil" | "this"
    #          | IDENTIFIER | "(" expression ")"
    def primary(self):
        tok = self.current_token

        if self.match("FALSE"):
            return self._literal(False, tok)
        if self.match("TRUE"):
            return self._literal(True, tok)
        if self.match("NIL"):
            return self._literal(None, tok)
        if self.match("NUMBER", "STRING"):
            return self._literal(tok.literal, tok)
        if self.match("THIS"):
            return This(tok)
        if self.match("IDENTIFIER"):
            return Variable(tok)

        if self.match("LEFT_PAREN"):
            inner = self.expr()
            self.eat("RIGHT_PAREN", "Expect ')' after expression.")
            node = Grouping(inner)
            node.line = tok.line
            return node

        missing = self.missing_left_operand()
        if missing is not None:
            return missing

        self.error_here("Expect expression.")

    def missing_left_operand(self):
        # Error productions: a binary operator with nothing on its left.
        # The right operand is parsed and thrown away so it does not cascade.
        rules = (
            (("COMMA",), self.comma),
            (("BANG_EQUAL", "EQUAL_EQUAL"), self.equality),
            (("GREATER", "GREATER_EQUAL", "LESS", "LESS_EQUAL"), self.comparison),
            (("PLUS",), self.term),
            (("SLASH", "STAR"), self.factor),
        )
        for token_types, operand in rules:
            if self.match(*token_types):
                op = self.previous()
                self.error(op, "Missing left-hand operand.")
                operand()
                return self._literal(None, op)
        return None

    # ---------- HELPERS ----------
    def _literal(self, value, tok: Token):
        node = Literal(value)
        node.line = tok.line
        return node
