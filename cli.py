import sys
import traceback

import colorama

from ast_nodes import Expr
from errors import ErrorReporter
from interpreter import Interpreter
from lexer import Lexer
from parser import Parser
from resolver import Resolver
from runtime import stringify

EXIT_USAGE = 64
EXIT_STATIC_ERROR = 65
EXIT_RUNTIME_ERROR = 70


# ---------- PIPELINE ----------
def run_source(source, interpreter, reporter):
    """Lex, parse, resolve and run a whole script.

    Any syntax or resolution error stops the run before anything executes.
    """
    tokens = Lexer(source, reporter).scan_tokens()
    statements = Parser(tokens, reporter).parse()
    if reporter.had_error:
        return

    Resolver(interpreter, reporter).resolve(statements)
    if reporter.had_error:
        return

    interpreter.interpret(statements)


def run_repl_line(source, interpreter, reporter):
    """Run one REPL entry. Returns the display text of a bare expression, else None."""
    tokens = Lexer(source, reporter).scan_tokens()
    result = Parser(tokens, reporter).parse_repl()
    if reporter.had_error:
        return None

    Resolver(interpreter, reporter).resolve(result)
    if reporter.had_error:
        return None

    if isinstance(result, Expr):
        return interpreter.interpret_expression(result)
    interpreter.interpret(result)
    return None


# Simple AST printer (so you can SEE what the parser built)
def ast_to_dict(node):
    if node is None:
        return None
    if isinstance(node, list):
        return [ast_to_dict(n) for n in node]

    t = node.__class__.__name__
    d = {"type": t}

    if t == "Literal":
        d["value"] = stringify(node.value) if not isinstance(node.value, str) else repr(node.value)
    elif t == "Grouping":
        d["expression"] = ast_to_dict(node.expression)
    elif t == "Unary":
        d["op"] = node.op.lexeme
        d["right"] = ast_to_dict(node.right)
    elif t in ("Binary", "Logical"):
        d["op"] = node.op.lexeme
        d["left"] = ast_to_dict(node.left)
        d["right"] = ast_to_dict(node.right)
    elif t == "Conditional":
        d["condition"] = ast_to_dict(node.condition)
        d["then"] = ast_to_dict(node.then_expr)
        d["else"] = ast_to_dict(node.else_expr)
    elif t == "Variable":
        d["name"] = node.name.lexeme
    elif t == "Assign":
        d["name"] = node.name.lexeme
        d["value"] = ast_to_dict(node.value)
    elif t == "Call":
        d["callee"] = ast_to_dict(node.callee)
        d["args"] = [ast_to_dict(a) for a in node.arguments]
    elif t == "Get":
        d["object"] = ast_to_dict(node.obj)
        d["name"] = node.name.lexeme
    elif t == "Set":
        d["object"] = ast_to_dict(node.obj)
        d["name"] = node.name.lexeme
        d["value"] = ast_to_dict(node.value)
    elif t == "This":
        pass
    elif t in ("Expression", "Print"):
        d["expression"] = ast_to_dict(node.expression)
    elif t == "Var":
        d["name"] = node.name.lexeme
        d["initializer"] = ast_to_dict(node.initializer)
    elif t == "Block":
        d["statements"] = [ast_to_dict(s) for s in node.statements]
    elif t == "If":
        d["condition"] = ast_to_dict(node.condition)
        d["then_branch"] = ast_to_dict(node.then_branch)
        d["else_branch"] = ast_to_dict(node.else_branch)
    elif t == "While":
        d["condition"] = ast_to_dict(node.condition)
        d["body"] = ast_to_dict(node.body)
    elif t == "Break":
        pass
    elif t == "Function":
        d["name"] = node.name.lexeme
        if node.params is None:
            d["getter"] = True
        else:
            d["params"] = [p.lexeme for p in node.params]
        d["body"] = [ast_to_dict(s) for s in node.body]
    elif t == "Return":
        d["value"] = ast_to_dict(node.value)
    elif t == "Class":
        d["name"] = node.name.lexeme
        d["methods"] = [ast_to_dict(m) for m in node.methods]
        d["static_methods"] = [ast_to_dict(m) for m in node.static_methods]
    else:
        d["raw"] = str(node)

    return d


def pretty(obj, indent=0):
    sp = "  " * indent
    if isinstance(obj, dict):
        lines = []
        for k, v in obj.items():
            if isinstance(v, (dict, list)):
                lines.append(f"{sp}{k}:")
                lines.append(pretty(v, indent + 1))
            else:
                lines.append(f"{sp}{k}: {v}")
        return "\n".join(lines)
    if isinstance(obj, list):
        lines = []
        for item in obj:
            lines.append(f"{sp}-")
            lines.append(pretty(item, indent + 1))
        return "\n".join(lines)
    return f"{sp}{obj}"


def read_source(path):
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def cmd_tokens(path, reporter):
    tokens = Lexer(read_source(path), reporter).scan_tokens()
    for tok in tokens:
        print(f"  {tok.line:4d}  {tok!r}")
    if reporter.had_error:
        sys.exit(EXIT_STATIC_ERROR)


def cmd_parse(path, reporter):
    tokens = Lexer(read_source(path), reporter).scan_tokens()
    statements = Parser(tokens, reporter).parse()
    if reporter.had_error:
        sys.exit(EXIT_STATIC_ERROR)
    print(pretty(ast_to_dict(statements)))


def cmd_run(path, reporter, debug: bool = False, trace: bool = False):
    interpreter = Interpreter(reporter=reporter, trace=trace)
    try:
        run_source(read_source(path), interpreter, reporter)
    except Exception as e:
        if debug:
            traceback.print_exc()
        else:
            print(f"Internal error: {e}", file=sys.stderr)
        sys.exit(EXIT_RUNTIME_ERROR)

    if reporter.had_error:
        sys.exit(EXIT_STATIC_ERROR)
    if reporter.had_runtime_error:
        sys.exit(EXIT_RUNTIME_ERROR)


def _count_braces_delta(line: str) -> int:
    # Minimal brace balancer for REPL multiline input.
    # Ignores braces inside "..." strings and after a // comment.
    delta = 0
    in_string = False
    i = 0
    while i < len(line):
        ch = line[i]
        if not in_string and ch == "/" and line[i + 1:i + 2] == "/":
            break
        if ch == '"':
            in_string = not in_string
        elif not in_string:
            if ch == "{":
                delta += 1
            elif ch == "}":
                delta -= 1
        i += 1
    return delta


def cmd_repl(reporter, debug: bool = False, trace: bool = False):
    # one interpreter for the whole session so globals persist
    interpreter = Interpreter(reporter=reporter, trace=trace)

    print("Lox REPL. Type :q to quit.")

    buffer_lines = []
    brace_depth = 0
    while True:
        prompt = "lox> " if not buffer_lines else "...> "
        try:
            line = input(prompt)
        except (EOFError, KeyboardInterrupt):
            print()
            break

        stripped = line.strip()
        if not buffer_lines and stripped in (":q", ":quit", "quit", "exit"):
            break

        if not stripped and brace_depth == 0 and not buffer_lines:
            continue

        buffer_lines.append(line)
        brace_depth += _count_braces_delta(line)

        # Wait for block completion if braces aren't balanced yet.
        if brace_depth > 0:
            continue

        source = "\n".join(buffer_lines) + "\n"
        buffer_lines = []
        brace_depth = 0

        # errors from one entry never end the session
        reporter.reset()
        try:
            text = run_repl_line(source, interpreter, reporter)
            if text is not None:
                print(text)
        except Exception as e:
            if debug:
                traceback.print_exc()
            else:
                print(f"Internal error: {e}", file=sys.stderr)


def usage():
    print("Usage:")
    print("  python cli.py run <file.lox>")
    print("  python cli.py repl")
    print("  python cli.py tokens <file.lox>")
    print("  python cli.py parse <file.lox>")
    print("  (optional) --debug to show Python traceback")
    print("  (optional) --trace to print each statement before it runs")
    print("  (optional) --no-color to disable colored diagnostics")
    sys.exit(EXIT_USAGE)


def main(argv=None):
    args = list(sys.argv[1:] if argv is None else argv)

    flags = {"--debug": False, "--trace": False, "--no-color": False}
    for flag in flags:
        if flag in args:
            flags[flag] = True
            args.remove(flag)

    colorama.just_fix_windows_console()
    color = not flags["--no-color"] and sys.stderr.isatty()
    reporter = ErrorReporter(color=color)

    if not args:
        usage()

    cmd = args[0]

    if cmd == "repl":
        if len(args) != 1:
            usage()
        cmd_repl(reporter, debug=flags["--debug"], trace=flags["--trace"])
        return

    if len(args) != 2:
        usage()

    path = args[1]
    try:
        if cmd == "run":
            cmd_run(path, reporter, debug=flags["--debug"], trace=flags["--trace"])
        elif cmd == "tokens":
            cmd_tokens(path, reporter)
        elif cmd == "parse":
            cmd_parse(path, reporter)
        else:
            print(f"Unknown command: {cmd}")
            sys.exit(EXIT_USAGE)
    except OSError as e:
        print(f"Cannot read {path}: {e}", file=sys.stderr)
        sys.exit(EXIT_USAGE)


if __name__ == "__main__":
    main()
