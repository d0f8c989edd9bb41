import io

from errors import ErrorReporter
from lexer import Lexer


def scan(source):
    reporter = ErrorReporter(stream=io.StringIO())
    tokens = Lexer(source, reporter).scan_tokens()
    return tokens, reporter


def types(tokens):
    return [t.type for t in tokens]


def test_statement_tokens_and_lines():
    tokens, reporter = scan("var x = 1.5; // comment\nprint x;")
    expected = ["VAR", "IDENTIFIER", "EQUAL", "NUMBER", "SEMICOLON", "PRINT", "IDENTIFIER", "SEMICOLON", "EOF"]
    if types(tokens) != expected:
        raise AssertionError(f"Unexpected token types: {types(tokens)}")
    if tokens[3].literal != 1.5:
        raise AssertionError(f"Expected literal 1.5, got {tokens[3].literal!r}")
    if tokens[5].line != 2:
        raise AssertionError(f"Expected print on line 2, got {tokens[5].line}")
    if reporter.had_error:
        raise AssertionError(f"Unexpected errors: {reporter.messages}")


def test_two_char_operators_use_longest_match():
    tokens, _ = scan("!= ! == = <= < >= >")
    expected = ["BANG_EQUAL", "BANG", "EQUAL_EQUAL", "EQUAL", "LESS_EQUAL", "LESS", "GREATER_EQUAL", "GREATER", "EOF"]
    if types(tokens) != expected:
        raise AssertionError(f"Unexpected token types: {types(tokens)}")


def test_numbers_take_one_fractional_part():
    tokens, _ = scan("12 3.25 12.")
    if types(tokens) != ["NUMBER", "NUMBER", "NUMBER", "DOT", "EOF"]:
        raise AssertionError(f"Unexpected token types: {types(tokens)}")
    literals = [t.literal for t in tokens[:3]]
    if literals != [12.0, 3.25, 12.0]:
        raise AssertionError(f"Unexpected literals: {literals}")


def test_keywords_are_case_sensitive_and_maximal_munch():
    tokens, _ = scan("Print print orchid or")
    if types(tokens) != ["IDENTIFIER", "PRINT", "IDENTIFIER", "OR", "EOF"]:
        raise AssertionError(f"Unexpected token types: {types(tokens)}")


def test_multiline_string_counts_lines():
    tokens, _ = scan('"a\nb" x')
    if tokens[0].type != "STRING" or tokens[0].literal != "a\nb":
        raise AssertionError(f"Bad string token: {tokens[0]!r}")
    if tokens[1].line != 2:
        raise AssertionError(f"Expected identifier on line 2, got {tokens[1].line}")


def test_unterminated_string_consumes_rest_of_input():
    tokens, reporter = scan('print "abc\nmore')
    if types(tokens) != ["PRINT", "EOF"]:
        raise AssertionError(f"Unexpected token types: {types(tokens)}")
    if reporter.messages != ["Unterminated string."]:
        raise AssertionError(f"Unexpected errors: {reporter.messages}")
    if reporter.diagnostics[0].line != 2:
        raise AssertionError(f"Expected error on line 2, got {reporter.diagnostics[0].line}")


def test_block_comments_nest_and_count_lines():
    tokens, reporter = scan("/* a /* b */ still comment \n */ print\n/*\n\n*/ x")
    if types(tokens) != ["PRINT", "IDENTIFIER", "EOF"]:
        raise AssertionError(f"Unexpected token types: {types(tokens)}")
    if tokens[0].line != 2 or tokens[1].line != 5:
        raise AssertionError(f"Bad lines: {[t.line for t in tokens]}")
    if reporter.had_error:
        raise AssertionError(f"Unexpected errors: {reporter.messages}")


def test_unbalanced_block_comment_is_reported():
    _, reporter = scan("/* outer /* inner */ never closed")
    if reporter.messages != ["Unterminated block comment."]:
        raise AssertionError(f"Unexpected errors: {reporter.messages}")


def test_unexpected_character_is_skipped():
    tokens, reporter = scan("1 @ 2")
    if types(tokens) != ["NUMBER", "NUMBER", "EOF"]:
        raise AssertionError(f"Unexpected token types: {types(tokens)}")
    if reporter.messages != ["Unexpected character '@'."]:
        raise AssertionError(f"Unexpected errors: {reporter.messages}")


def test_lexemes_reproduce_significant_source():
    source = 'var a = 1;  /* note */ print a + 2.5; // trailing\nprint "s p";'
    tokens, _ = scan(source)
    joined = "".join(t.lexeme for t in tokens)
    if joined != 'vara=1;printa+2.5;print"s p";':
        raise AssertionError(f"Lexemes do not round-trip: {joined!r}")


def test_scanning_twice_gives_the_same_tokens():
    lexer = Lexer("fun f(a) { return a * 2; }", ErrorReporter(stream=io.StringIO()))
    first = lexer.scan_tokens()
    second = lexer.scan_tokens()
    if first != second:
        raise AssertionError(f"Rescan differs:\n{first}\n{second}")
