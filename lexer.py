from dataclasses import dataclass

from errors import ErrorReporter


@dataclass(frozen=True)
class Token:
    type: str
    lexeme: str
    literal: object = None
    line: int = 1

    def __repr__(self):
        if self.literal is not None:
            return f"{self.type}({self.lexeme!r}, {self.literal!r})"
        return f"{self.type}({self.lexeme!r})"


KEYWORDS = {
    "and": "AND",
    "break": "BREAK",
    "class": "CLASS",
    "else": "ELSE",
    "false": "FALSE",
    "for": "FOR",
    "fun": "FUN",
    "if": "IF",
    "nil": "NIL",
    "or": "OR",
    "print": "PRINT",
    "return": "RETURN",
    "this": "THIS",
    "true": "TRUE",
    "var": "VAR",
    "while": "WHILE",
}

SINGLE_CHAR_TOKENS = {
    "(": "LEFT_PAREN",
    ")": "RIGHT_PAREN",
    "{": "LEFT_BRACE",
    "}": "RIGHT_BRACE",
    ",": "COMMA",
    ".": "DOT",
    "-": "MINUS",
    "+": "PLUS",
    ";": "SEMICOLON",
    "*": "STAR",
    "?": "QUESTION",
    ":": "COLON",
}

# char -> (type alone, type when followed by '=')
EQUAL_SUFFIX_TOKENS = {
    "!": ("BANG", "BANG_EQUAL"),
    "=": ("EQUAL", "EQUAL_EQUAL"),
    "<": ("LESS", "LESS_EQUAL"),
    ">": ("GREATER", "GREATER_EQUAL"),
}


def is_digit(ch):
    return ch is not None and "0" <= ch <= "9"


def is_alpha(ch):
    return ch is not None and ("a" <= ch <= "z" or "A" <= ch <= "Z" or ch == "_")


class Lexer:
    def __init__(self, text, reporter=None):
        self.text = text
        self.reporter = reporter or ErrorReporter()
        self._reset()

    def _reset(self):
        self.pos = 0
        self.start = 0
        self.current_char = self.text[0] if self.text else None
        self.line = 1

    def advance(self):
        # lines are counted here, so newlines inside strings and comments count too
        if self.current_char == "\n":
            self.line += 1
        self.pos += 1
        if self.pos >= len(self.text):
            self.current_char = None
        else:
            self.current_char = self.text[self.pos]

    def peek(self):
        nxt = self.pos + 1
        if nxt >= len(self.text):
            return None
        return self.text[nxt]

    def lexeme(self):
        return self.text[self.start:self.pos]

    def make_token(self, type, literal=None, line=None):
        return Token(type, self.lexeme(), literal, self.line if line is None else line)

    def skip_line_comment(self):
        while self.current_char is not None and self.current_char != "\n":
            self.advance()

    def skip_block_comment(self):
        # assumes the opening /* was already consumed
        depth = 1
        while self.current_char is not None:
            if self.current_char == "/" and self.peek() == "*":
                self.advance()
                self.advance()
                depth += 1
                continue
            if self.current_char == "*" and self.peek() == "/":
                self.advance()
                self.advance()
                depth -= 1
                if depth == 0:
                    return
                continue
            self.advance()

        self.reporter.error(self.line, "Unterminated block comment.")

    def read_identifier(self):
        while is_alpha(self.current_char) or is_digit(self.current_char):
            self.advance()
        text = self.lexeme()
        return self.make_token(KEYWORDS.get(text, "IDENTIFIER"))

    def read_number(self):
        while is_digit(self.current_char):
            self.advance()

        # a fractional part needs at least one digit after the dot
        if self.current_char == "." and is_digit(self.peek()):
            self.advance()
            while is_digit(self.current_char):
                self.advance()

        return self.make_token("NUMBER", float(self.lexeme()))

    def read_string(self):
        start_line = self.line
        self.advance()  # opening quote

        while self.current_char is not None and self.current_char != '"':
            self.advance()

        if self.current_char is None:
            self.reporter.error(self.line, "Unterminated string.")
            return None

        self.advance()  # closing quote
        value = self.text[self.start + 1:self.pos - 1]
        return self.make_token("STRING", value, line=start_line)

    def get_next_token(self):
        while self.current_char is not None:
            self.start = self.pos
            ch = self.current_char

            if ch in " \t\r\n":
                self.advance()
                continue

            if ch == "/":
                nxt = self.peek()
                if nxt == "/":
                    self.skip_line_comment()
                    continue
                if nxt == "*":
                    self.advance()
                    self.advance()
                    self.skip_block_comment()
                    continue
                self.advance()
                return self.make_token("SLASH")

            if is_alpha(ch):
                return self.read_identifier()

            if is_digit(ch):
                return self.read_number()

            if ch == '"':
                token = self.read_string()
                if token is None:
                    break
                return token

            if ch in EQUAL_SUFFIX_TOKENS:
                single, double = EQUAL_SUFFIX_TOKENS[ch]
                self.advance()
                if self.current_char == "=":
                    self.advance()
                    return self.make_token(double)
                return self.make_token(single)

            if ch in SINGLE_CHAR_TOKENS:
                self.advance()
                return self.make_token(SINGLE_CHAR_TOKENS[ch])

            self.reporter.error(self.line, f"Unexpected character '{ch}'.")
            self.advance()

        self.start = self.pos
        return Token("EOF", "", None, self.line)

    def scan_tokens(self):
        self._reset()
        tokens = []
        while True:
            token = self.get_next_token()
            tokens.append(token)
            if token.type == "EOF":
                return tokens
