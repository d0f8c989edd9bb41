import io

from cli import run_source
from errors import ErrorReporter
from interpreter import Interpreter


def expect_lines(result, expected):
    if result.errors or result.runtime_errors:
        raise AssertionError(f"Unexpected errors: {result.errors} {result.runtime_errors}")
    if result.lines != expected:
        raise AssertionError(f"Expected {expected}, got {result.lines}")


def test_arithmetic_and_stringify(run_lox):
    result = run_lox(
        'print 1 + 2; print 7 / 2; print 2.50; print -3; print 0.1 + 0.2;'
        'print "a" + 1; print 1 + "a"; print "x" + nil; print 10 - 4; print 3 * 4;'
    )
    expect_lines(result, ["3", "3.5", "2.5", "-3", "0.30000000000000004", "a1", "1a", "xnil", "6", "12"])


def test_comparisons_and_equality(run_lox):
    result = run_lox(
        "print 1 < 2; print 2 <= 2; print 3 > 4; print 4 >= 5;"
        'print nil == nil; print nil == false; print true == 1; print 1 == 1; print "a" == "a"; print 1 != 2;'
    )
    expect_lines(result, ["true", "true", "false", "false", "true", "false", "false", "true", "true", "true"])


def test_truthiness(run_lox):
    result = run_lox('print 0 ? "t" : "f"; print "" ? "t" : "f"; print nil ? "t" : "f"; print !false; print !0;')
    expect_lines(result, ["t", "t", "f", "true", "false"])


def test_logical_operators_short_circuit_and_return_operand(run_lox):
    result = run_lox('print nil or "x"; print 1 and 2; print false and boom(); print "y" or boom();')
    expect_lines(result, ["x", "2", "false", "y"])


def test_conditional_evaluates_one_branch(run_lox):
    result = run_lox("var x = 0; true ? (x = 1) : (x = 2); print x; false ? (x = 3) : (x = 4); print x;")
    expect_lines(result, ["1", "4"])


def test_comma_yields_right_operand(run_lox):
    result = run_lox("var a = 0; print (a = 5, a + 1);")
    expect_lines(result, ["6"])


def test_division_by_zero_is_a_runtime_error(run_lox):
    result = run_lox("print 1;\nprint 1 / 0;\nprint 2;")
    if result.lines != ["1"]:
        raise AssertionError(f"Execution should stop at the error, got {result.lines}")
    if result.runtime_errors != ["Division by zero."]:
        raise AssertionError(f"Unexpected runtime errors: {result.runtime_errors}")
    if "[line 2]" not in result.err:
        raise AssertionError(f"Runtime error should carry its line: {result.err!r}")


def test_operand_type_errors_name_the_operator(run_lox):
    cases = {
        'print "a" - 1;': "Operands of '-' must be numbers.",
        "print 1 < nil;": "Operands of '<' must be numbers.",
        "print nil + nil;": "Operands of '+' must be two numbers or at least one string.",
        "print true + 1;": "Operands of '+' must be two numbers or at least one string.",
        'print -"a";': "Operand of '-' must be a number.",
    }
    for source, message in cases.items():
        result = run_lox(source)
        if result.runtime_errors != [message]:
            raise AssertionError(f"{source}: expected {message!r}, got {result.runtime_errors}")


def test_undefined_variables(run_lox):
    result = run_lox("print nope;")
    if result.runtime_errors != ["Undefined variable 'nope'."]:
        raise AssertionError(f"Unexpected runtime errors: {result.runtime_errors}")

    result = run_lox("nope = 1;")
    if result.runtime_errors != ["Undefined variable 'nope'."]:
        raise AssertionError(f"Unexpected runtime errors: {result.runtime_errors}")


def test_while_and_break(run_lox):
    result = run_lox("var i = 0; while (true) { i = i + 1; if (i == 3) break; } print i;")
    expect_lines(result, ["3"])


def test_break_leaves_only_the_innermost_loop(run_lox):
    source = """
    var n = 0;
    for (var i = 0; i < 3; i = i + 1) {
      for (var j = 0; j < 10; j = j + 1) {
        if (j == 2) break;
        n = n + 1;
      }
    }
    print n;
    """
    expect_lines(run_lox(source), ["6"])


def test_for_matches_hand_written_while(run_lox):
    sugared = run_lox("for (var i = 0; i < 3; i = i + 1) print i;")
    manual = run_lox("{ var i = 0; while (i < 3) { print i; i = i + 1; } }")
    expect_lines(sugared, ["0", "1", "2"])
    if sugared.out != manual.out:
        raise AssertionError(f"for and while differ: {sugared.out!r} vs {manual.out!r}")


def test_shadowing_in_inner_block(run_lox):
    source = """
    var a = "outer";
    {
      var a = "inner";
      print a;
    }
    print a;
    """
    expect_lines(run_lox(source), ["inner", "outer"])


def test_closures_bind_where_they_are_declared(run_lox):
    source = """
    var a = "global";
    {
      fun show() { print a; }
      show();
      var a = "block";
      show();
      print a;
    }
    """
    expect_lines(run_lox(source), ["global", "global", "block"])


def test_closure_outlives_its_defining_call(run_lox):
    source = """
    fun makeCounter() {
      var count = 0;
      fun inc() { count = count + 1; return count; }
      return inc;
    }
    var c = makeCounter();
    print c();
    print c();
    var d = makeCounter();
    print d();
    """
    expect_lines(run_lox(source), ["1", "2", "1"])


def test_two_closures_share_one_frame(run_lox):
    source = """
    var getter;
    var setter;
    fun make() {
      var v = 0;
      fun get() { return v; }
      fun set(x) { v = x; }
      getter = get;
      setter = set;
    }
    make();
    setter(42);
    print getter();
    """
    expect_lines(run_lox(source), ["42"])


def test_recursion_and_return(run_lox):
    source = """
    fun fib(n) { if (n < 2) return n; return fib(n - 1) + fib(n - 2); }
    print fib(10);
    fun first() { var i = 0; while (true) { if (i == 4) return i; i = i + 1; } }
    print first();
    fun none() { }
    print none();
    fun bare() { return; }
    print bare();
    """
    expect_lines(run_lox(source), ["55", "4", "nil", "nil"])


def test_call_errors(run_lox):
    result = run_lox('var x = "text"; x();')
    if result.runtime_errors != ["Can only call functions and classes."]:
        raise AssertionError(f"Unexpected runtime errors: {result.runtime_errors}")

    result = run_lox("fun f(a) { return a; } f(1, 2);")
    if result.runtime_errors != ["Expected 1 arguments but got 2."]:
        raise AssertionError(f"Unexpected runtime errors: {result.runtime_errors}")


def test_call_depth_limit(run_lox):
    result = run_lox("fun f() { f(); } f();", max_call_depth=20)
    if result.runtime_errors != ["Stack overflow."]:
        raise AssertionError(f"Unexpected runtime errors: {result.runtime_errors}")


def test_native_clock_and_function_display(run_lox):
    result = run_lox("fun f() {} print f; print clock; print clock() > 0;")
    expect_lines(result, ["<fn f>", "<native fn>", "true"])


def test_runtime_error_restores_global_environment():
    out = io.StringIO()
    reporter = ErrorReporter(stream=io.StringIO())
    interpreter = Interpreter(stdout=out, reporter=reporter)

    run_source("var g = 1; { var a = 1; print a / 0; }", interpreter, reporter)
    if interpreter.environment is not interpreter.globals:
        raise AssertionError("The block environment leaked past the error")

    reporter.reset()
    run_source("print g + 1;", interpreter, reporter)
    if out.getvalue().splitlines() != ["3"]:
        raise AssertionError(f"Unexpected output: {out.getvalue()!r}")


def test_runs_are_deterministic(run_lox):
    source = "var s = 0; for (var i = 1; i <= 10; i = i + 1) s = s + i * i; print s;"
    first = run_lox(source)
    second = run_lox(source)
    expect_lines(first, ["385"])
    if first.out != second.out:
        raise AssertionError("Same program, different output")


def test_trace_prints_each_statement(run_lox):
    result = run_lox("print 1;\nvar a = 2;", trace=True)
    if result.lines != ["TRACE line 1: Print", "1", "TRACE line 2: Var"]:
        raise AssertionError(f"Unexpected trace: {result.lines}")


def test_deep_recursion_within_default_limit(run_lox):
    source = "fun sum(n) { if (n == 0) return 0; return n + sum(n - 1); } print sum(500);"
    expect_lines(run_lox(source), ["125250"])


def test_negative_zero_keeps_its_sign(run_lox):
    result = run_lox("print -0; print 0 * -1; print -0 == 0;")
    expect_lines(result, ["-0", "-0", "true"])
