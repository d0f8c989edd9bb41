import sys

from colorama import Fore, Style


class LoxError(Exception):
    def __init__(self, message: str, line: int | None = None):
        super().__init__(message)
        self.message = message
        self.line = line


class LoxSyntaxError(LoxError):
    """Collected by the reporter while lexing and parsing; never raised."""

    def __init__(self, message: str, line: int | None = None, where: str = ""):
        super().__init__(message, line)
        self.where = where

    def __str__(self) -> str:
        return f"[line {self.line}] Error{self.where}: {self.message}"


class LoxResolveError(LoxSyntaxError):
    pass


class LoxRuntimeError(LoxError):
    def __init__(self, token, message: str):
        super().__init__(message, getattr(token, "line", None))
        self.token = token

    def format(self) -> str:
        if self.line is None:
            return self.message
        return f"{self.message}\n[line {self.line}]"

    def __str__(self) -> str:
        return self.format()


def _where(token) -> str:
    if token.type == "EOF":
        return " at end"
    return f" at '{token.lexeme}'"


class ErrorReporter:
    def __init__(self, stream=None, color: bool = False):
        self.stream = stream
        self.color = color
        self.diagnostics = []   # syntax + resolve errors, in report order
        self.runtime_errors = []
        self.had_error = False
        self.had_runtime_error = False

    def _out(self):
        return self.stream if self.stream is not None else sys.stderr

    def _paint(self, text: str, fore: str) -> str:
        if not self.color:
            return text
        return f"{fore}{Style.BRIGHT}{text}{Style.RESET_ALL}"

    def _emit(self, err: LoxSyntaxError):
        self.diagnostics.append(err)
        self.had_error = True
        label = self._paint("Error", Fore.RED)
        print(f"[line {err.line}] {label}{err.where}: {err.message}", file=self._out())

    # lexer errors have a line but no token
    def error(self, line: int, message: str):
        self._emit(LoxSyntaxError(message, line))

    def token_error(self, token, message: str):
        self._emit(LoxSyntaxError(message, token.line, _where(token)))

    def resolve_error(self, token, message: str):
        self._emit(LoxResolveError(message, token.line, _where(token)))

    def runtime_error(self, err: LoxRuntimeError):
        self.runtime_errors.append(err)
        self.had_runtime_error = True
        print(self._paint(err.format(), Fore.MAGENTA), file=self._out())

    def reset(self):
        self.diagnostics = []
        self.runtime_errors = []
        self.had_error = False
        self.had_runtime_error = False

    @property
    def messages(self):
        return [d.message for d in self.diagnostics]
