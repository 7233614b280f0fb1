import pytest

from rustscript import Interpreter, evaluate, evaluate_all, new_global_scope
from rustscript.errors import (
    ArityError, CoercionError, NoMatchError, NoMatchingArityError, StackOverflowError,
    TypeMismatchError, UndefinedVariableError, VariationError, DuplicateArityError,
)
from rustscript.types import BoolVal, CharVal, FloatVal, IntVal, LambdaVal, ListVal, UNIT


def ints(*values):
    return ListVal.of(IntVal(v) for v in values)


@pytest.fixture
def scope():
    return new_global_scope()


def test_arithmetic(scope):
    assert evaluate('5 + 12 * 3 - 2', scope) == IntVal(39)
    assert evaluate('(5 + -12) * (3 - -2)', scope) == IntVal(-35)
    assert evaluate('7 / 2 + 0.5', scope) == FloatVal(3.5)


def test_bindings_persist_between_statements(scope):
    assert evaluate('let x = 5', scope) == UNIT
    assert evaluate('x', scope) == IntVal(5)


def test_recursive_closure(scope):
    evaluate('let fib = fn(n) => if (n < 2) then (1) else (fib(n - 1) + fib(n - 2))', scope)
    assert evaluate('fib(10)', scope) == IntVal(89)


def test_range_and_sugar(scope):
    assert evaluate('range(5, 10)', scope) == ints(5, 6, 7, 8, 9)
    assert evaluate('[5..10]', scope) == ints(5, 6, 7, 8, 9)
    assert evaluate('range(0, 20) == [0..20]', scope) == BoolVal(True)
    assert evaluate('range(3, 3)', scope) == ListVal()


def test_higher_order_prelude(scope):
    assert evaluate('fmap(fn(n) => n * 2, [0, 1, 2, 3])', scope) == ints(0, 2, 4, 6)
    assert evaluate('filter(fn(n) => n % 3 == 0, [0..10])', scope) == ints(0, 3, 6, 9)
    assert evaluate('fold(fn(a, b) => a + b, 0, [1..1000])', scope) == IntVal(499500)
    assert evaluate('sum(range(1, 1000))', scope) == IntVal(499500)
    assert evaluate('product([1..6])', scope) == IntVal(120)
    assert evaluate('reverse([1, 2, 3])', scope) == ints(3, 2, 1)
    assert evaluate('seq([1, 2, 3])', scope) == IntVal(3)


def test_comprehension(scope):
    assert evaluate('[x * x for x in [1..6] if x % 2 == 1]', scope) == ints(1, 9, 25)
    assert evaluate('[c for c in "abc"]', scope) == ListVal.from_string('abc')


def test_string_char_list_unification(scope):
    evaluate('let word = "hello"', scope)
    evaluate("let chars = ['h', 'e', 'l', 'l', 'o']", scope)
    assert evaluate('word == chars', scope) == BoolVal(True)
    assert evaluate('typeof(chars)', scope) == ListVal.from_string('Str')
    assert evaluate('fold(fn(acc, c) => acc + c, "", word)', scope) == ListVal.from_string('hello')
    assert evaluate('[^word] + $word', scope) == ListVal.from_string('hello')


def test_arity_overloading(scope):
    evaluate('let f = fn(x) => x', scope)
    evaluate('var f = fn(x, y) => x + y', scope)
    assert evaluate('f(3)', scope) == IntVal(3)
    assert evaluate('f(3, 4)', scope) == IntVal(7)
    with pytest.raises(ArityError) as exc:
        evaluate('f(3, 4, 5)', scope)
    assert isinstance(exc.value, NoMatchingArityError)
    assert exc.value.got == 3
    assert exc.value.expected == (1, 2)


def test_variation_errors(scope):
    with pytest.raises(VariationError):
        evaluate('var nothing = fn(x) => x', scope)
    evaluate('let n = 1', scope)
    with pytest.raises(VariationError):
        evaluate('var n = fn(x) => x', scope)
    evaluate('let g = fn(x) => x', scope)
    with pytest.raises(VariationError):
        evaluate('var g = 5', scope)
    with pytest.raises(DuplicateArityError):
        evaluate('var g = fn(y) => y', scope)


def test_closure_uses_defining_scope(scope):
    evaluate('let make_adder = fn(n) => fn(x) => x + n', scope)
    evaluate('let add5 = make_adder(5)', scope)
    evaluate('let n = 100', scope)
    assert evaluate('add5(10)', scope) == IntVal(15)
    assert evaluate('{ let n = 1000; add5(1) }', scope) == IntVal(6)


def test_lambda_does_not_see_caller_locals(scope):
    evaluate('let peek = fn() => secret', scope)
    with pytest.raises(UndefinedVariableError):
        evaluate('{ let secret = 1; peek() }', scope)


def test_block_bindings_do_not_leak(scope):
    assert evaluate('{ let inner = 4; inner * 2 }', scope) == IntVal(8)
    with pytest.raises(UndefinedVariableError):
        evaluate('inner', scope)
    assert evaluate('{}', scope) == UNIT


def test_if_evaluates_one_branch(scope):
    assert evaluate('if (true) then 1 else undefined_name', scope) == IntVal(1)
    assert evaluate('if ([]) then 1 else 2', scope) == IntVal(2)
    with pytest.raises(CoercionError):
        evaluate('if (1) then 1 else 2', scope)


def test_match(scope):
    evaluate('let sign = fn(n) => match n | x and x < 0 then -1 | x and x == 0 then 0 | x then 1', scope)
    assert evaluate('sign(-4)', scope) == IntVal(-1)
    assert evaluate('sign(0)', scope) == IntVal(0)
    assert evaluate('sign(9)', scope) == IntVal(1)
    with pytest.raises(NoMatchError) as exc:
        evaluate('match 3 | x and x > 5 then x', scope)
    assert exc.value.value == IntVal(3)


def test_match_binding_is_local(scope):
    assert evaluate('match 2 | v then v * 10', scope) == IntVal(20)
    with pytest.raises(UndefinedVariableError):
        evaluate('v', scope)


def test_and_or_are_not_short_circuit(scope):
    assert evaluate('true || false', scope) == BoolVal(True)
    assert evaluate('1 < 2 && 2 < 3', scope) == BoolVal(True)
    with pytest.raises(UndefinedVariableError):
        evaluate('true || missing', scope)


def test_char_arithmetic(scope):
    assert evaluate("'a' + 2", scope) == CharVal('c')
    assert evaluate('^"i" - 8', scope) == CharVal('a')


def test_type_errors(scope):
    with pytest.raises(TypeMismatchError) as exc:
        evaluate('1 + true', scope)
    assert exc.value.operation == 'Badd'
    with pytest.raises(TypeMismatchError):
        evaluate('[1] * 2', scope)


def test_calling_a_non_lambda(scope):
    evaluate('let x = 3', scope)
    with pytest.raises(UndefinedVariableError):
        evaluate('x(1)', scope)
    with pytest.raises(UndefinedVariableError):
        evaluate('nothing_here()', scope)


def test_lambda_value_is_bound(scope):
    value = evaluate('fn(a) => a', scope)
    assert isinstance(value, LambdaVal)
    assert value.scope is scope


def test_evaluate_all_fails_fast_and_keeps_earlier_bindings(scope):
    with pytest.raises(TypeMismatchError):
        evaluate_all('let a = 1\nlet b = a + true\nlet c = 3', scope)
    assert evaluate('a', scope) == IntVal(1)
    with pytest.raises(UndefinedVariableError):
        evaluate('c', scope)


def test_evaluate_all_returns_each_result(scope):
    assert evaluate_all('let a = 2; a * 3; [a]', scope) == [UNIT, IntVal(6), ints(2)]


def test_stack_overflow_is_reported(scope):
    evaluate('let forever = fn(n) => forever(n + 1)', scope)
    with pytest.raises(StackOverflowError):
        evaluate('forever(0)', scope)
    # the scope is still usable afterwards
    assert evaluate('1 + 1', scope) == IntVal(2)


def test_interpreter_clear():
    interp = Interpreter()
    interp.eval('let kept = 1')
    assert interp.eval('kept') == IntVal(1)
    interp.clear()
    with pytest.raises(UndefinedVariableError):
        interp.eval('kept')
    assert interp.eval('sum([1, 2])') == IntVal(3)


def test_debug_trace(tmp_path):
    trace = tmp_path / 'trace.txt'
    with Interpreter(debug_level=3, debug_file=str(trace)) as interp:
        interp.eval_all('let sq = fn(x) => x * x\nsq(3)')
    text = trace.read_text(encoding='utf-8')
    assert '[Global] let sq' in text
    assert 'call sq/1' in text
