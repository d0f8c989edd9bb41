"""Shared fixtures: run Lox source in-process and capture what it printed."""

import io

import pytest

from cli import run_source
from errors import ErrorReporter
from interpreter import Interpreter
from lexer import Lexer
from parser import Parser


class LoxRun:
    def __init__(self, out: str, err: str, reporter: ErrorReporter):
        self.out = out
        self.err = err
        self.reporter = reporter

    @property
    def lines(self):
        return self.out.splitlines()

    @property
    def errors(self):
        """Syntax and resolution messages, in report order."""
        return self.reporter.messages

    @property
    def runtime_errors(self):
        return [e.message for e in self.reporter.runtime_errors]


@pytest.fixture
def run_lox():
    def run(source: str, **interpreter_kwargs) -> LoxRun:
        out = io.StringIO()
        err = io.StringIO()
        reporter = ErrorReporter(stream=err)
        interpreter = Interpreter(stdout=out, reporter=reporter, **interpreter_kwargs)
        run_source(source, interpreter, reporter)
        return LoxRun(out.getvalue(), err.getvalue(), reporter)

    return run


@pytest.fixture
def parse_lox():
    def parse(source: str):
        reporter = ErrorReporter(stream=io.StringIO())
        tokens = Lexer(source, reporter).scan_tokens()
        statements = Parser(tokens, reporter).parse()
        return statements, reporter

    return parse
