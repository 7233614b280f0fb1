import builtins

import pytest

from rustscript import Interpreter, evaluate, new_global_scope
from rustscript.errors import ArityError, ListIndexError, TypeMismatchError
from rustscript.types import BoolVal, IntVal, ListVal, UNIT


def s(text):
    return ListVal.from_string(text)


@pytest.fixture
def scope():
    return new_global_scope()


def test_print_joins_arguments(scope, capsys):
    evaluate('print("a", 1, \'c\', [1, 2], 2.5, true)', scope)
    evaluate('println()', scope)
    evaluate('println("x" + 1)', scope)
    assert capsys.readouterr().out == "a 1 c [1, 2] 2.5 true\nx1\n"


def test_print_returns_unit(scope, capsys):
    assert evaluate('println("hi")', scope) == UNIT
    assert capsys.readouterr().out == 'hi\n'


def test_input(scope, monkeypatch):
    prompts = []

    def fake_input(prompt=''):
        prompts.append(prompt)
        return 'Ada'

    monkeypatch.setattr(builtins, 'input', fake_input)
    assert evaluate('input("Name: ")', scope) == s('Ada')
    assert evaluate("input('>')", scope) == s('Ada')
    assert prompts == ['Name: ', '>']


def test_input_at_end_of_file(scope, monkeypatch):
    def eof(prompt=''):
        raise EOFError

    monkeypatch.setattr(builtins, 'input', eof)
    assert evaluate('input("? ")', scope) == s('')


def test_input_requires_text_prompt(scope):
    with pytest.raises(TypeMismatchError):
        evaluate('input(5)', scope)


@pytest.mark.parametrize('source, expected', [
    ('typeof(1)', 'Integer'),
    ('typeof(1.5)', 'Float'),
    ('typeof(true)', 'Bool'),
    ("typeof('a')", 'Char'),
    ('typeof([1])', 'List'),
    ('typeof("a")', 'Str'),
    ('typeof(fn(x) => x)', 'Lambda'),
    ('typeof(println())', 'Unit'),
])
def test_typeof(scope, source, expected, capsys):
    assert evaluate(source, scope) == s(expected)


def test_typeof_module(scope):
    evaluate('mod M { let a = 1 }', scope)
    assert evaluate('typeof(M)', scope) == s('Module')


def test_upper_lower(scope):
    assert evaluate('upper("MiXed")', scope) == s('MIXED')
    assert evaluate('lower("MiXed")', scope) == s('mixed')
    with pytest.raises(TypeMismatchError):
        evaluate('upper(1)', scope)


@pytest.mark.parametrize('source, expected', [
    ('round(2.5)', 3),
    ('round(0.0 - 2.5)', -3),
    ('round(2.4)', 2),
    ('round(7)', 7),
    ('floor(2.7)', 2),
    ('floor(0.0 - 2.2)', -3),
    ('ceil(2.1)', 3),
    ('ceil(0.0 - 2.7)', -2),
])
def test_rounding(scope, source, expected):
    assert evaluate(source, scope) == IntVal(expected)


def test_float_literal_cannot_be_negated(scope):
    with pytest.raises(TypeMismatchError) as exc:
        evaluate('round(-2.5)', scope)
    assert exc.value.operation == 'Bad Negate'


def test_substr(scope):
    assert evaluate('substr("ThisIsNice", 6, 10)', scope) == s('Nice')
    assert evaluate('substr("abc", 1, 1)', scope) == s('')
    with pytest.raises(ListIndexError):
        evaluate('substr("abc", 2, 9)', scope)
    with pytest.raises(TypeMismatchError):
        evaluate('substr("abc", "a", 2)', scope)


def test_parsing(scope):
    assert evaluate('parseInt("42")', scope) == IntVal(42)
    assert evaluate('parseInt(" -7 ")', scope) == IntVal(-7)
    assert evaluate('parseInt("4x")', scope) == UNIT
    assert evaluate('parseBool(" TRUE ")', scope) == BoolVal(True)
    assert evaluate('parseBool("false")', scope) == BoolVal(False)
    assert evaluate('parseBool("yes")', scope) == UNIT


def test_has(scope):
    assert evaluate('has(parseInt("1"))', scope) == BoolVal(True)
    assert evaluate('has(parseInt("one"))', scope) == BoolVal(False)


def test_builtin_arity_is_checked(scope):
    with pytest.raises(ArityError) as exc:
        evaluate('upper("a", "b")', scope)
    assert exc.value.name == 'upper'
    assert exc.value.expected == 1
    assert exc.value.got == 2


def test_user_lambda_wins_over_builtin(scope):
    evaluate('let upper = fn(x) => "shadowed"', scope)
    assert evaluate('upper("a")', scope) == s('shadowed')


def test_basic_io_can_be_swapped():
    from rustscript.std.io import BasicIO

    class Recorder(BasicIO):
        def __init__(self):
            self.written = []

        def write(self, text):
            self.written.append(text)

    io = Recorder()
    interp = Interpreter(basic_io=io)
    interp.eval('println("to", "recorder")')
    assert io.written == ['to recorder\n']
