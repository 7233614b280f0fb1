"""Tokenizer for RustScript.

Raw source text is split into terminals by a lark basic lexer built from
the terminal-only grammar below. A post-pass then turns lark tokens into
:class:`Token` records:

* string and character literals are unescaped,
* identifiers containing a dot become ``IDENT_PATH`` tokens,
* ``true``/``false`` become ``BOOL`` tokens,
* runs of newlines and semicolons collapse into a single separator.

Lexing stops at the first error; lark's ``UnexpectedCharacters`` is
reported as a :class:`LexError` with the offending position.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import List

from lark import Lark
from lark.exceptions import UnexpectedCharacters

from .errors import LexError


RUSTSCRIPT_TOKENS = r"""
    start: token*
    ?token: FLOAT | INT | CHAR | STRING | IDENT
          | IF | THEN | ELSE | LET | VAR | FN | FOR | IN | MATCH | MOD | PUB | IMP | FROM
          | TRUE | FALSE | AND
          | LPAREN | RPAREN | LBRACKET | RBRACKET | LBRACE | RBRACE
          | PLUS | MINUS | STAR | SLASH | PERCENT
          | EQ | NEQ | LT | GT | ANDAND | OROR | ARROW | ASSIGN
          | DOTDOT | COMMA | CARET | DOLLAR | PIPE
          | NEWLINE | SEMICOLON

    FLOAT.2: /\d+\.\d+/
    INT: /\d+/
    CHAR: /'(?:\\.|[^'\\])*'/
    STRING: /"(?:\\.|[^"\\])*"/
    IDENT: /[^\W\d]\w*(?:\.\w+)*/

    IF: "if"
    THEN: "then"
    ELSE: "else"
    LET: "let"
    VAR: "var"
    FN: "fn"
    FOR: "for"
    IN: "in"
    MATCH: "match"
    MOD: "mod"
    PUB: "pub"
    IMP: "imp"
    FROM: "from"
    TRUE: "true"
    FALSE: "false"
    AND: "and"

    LPAREN: "("
    RPAREN: ")"
    LBRACKET: "["
    RBRACKET: "]"
    LBRACE: "{"
    RBRACE: "}"
    PLUS: "+"
    MINUS: "-"
    STAR: "*"
    SLASH: "/"
    PERCENT: "%"
    EQ: "=="
    NEQ: "!="
    LT: "<"
    GT: ">"
    ANDAND: "&&"
    OROR: "||"
    ARROW: "=>"
    ASSIGN: "="
    DOTDOT: ".."
    COMMA: ","
    CARET: "^"
    DOLLAR: "$"
    PIPE: "|"
    NEWLINE: /\n/
    SEMICOLON: ";"

    COMMENT: /\/\/[^\n]*/
    WHITESPACE: /[ \t\r\f\v]+/
    %ignore COMMENT
    %ignore WHITESPACE
"""


RUSTSCRIPT_LEXER = Lark(
    RUSTSCRIPT_TOKENS,
    parser='lalr',
    lexer='basic',
)


SEPARATORS = ('NEWLINE', 'SEMICOLON')

ESCAPE_CODES = {
    '0': '\0',
    'a': '\a',
    'b': '\b',
    't': '\t',
    'n': '\n',
    'v': '\v',
    'f': '\f',
    'r': '\r',
    'e': '\x1b',
    '\\': '\\',
    '\'': '\'',
    '"': '"',
}

HEX_DIGITS = re.compile(r'[0-9a-fA-F]{4}')
PATH_BEFORE_DOT = re.compile(r'[^\W\d]\w*(?:\.\w+)*$')


@dataclass(frozen=True)
class Token:
    type: str
    value: str
    offset: int
    length: int
    line: int
    column: int

    def __str__(self) -> str:
        if self.type in ('IDENT', 'IDENT_PATH'):
            return f"Ident '{self.value}'"
        if self.type in ('INT', 'FLOAT'):
            return f"Number {self.value}"
        if self.type == 'EOF':
            return 'end of input'
        return f"'{self.value}'" if self.value and self.type not in SEPARATORS else self.type


def unescape(raw: str, line: int, column: int) -> str:
    """Decode the backslash escapes of a literal body."""
    result: List[str] = []
    i = 0
    while i < len(raw):
        c = raw[i]
        if c != '\\':
            result.append(c)
            i += 1
            continue
        i += 1
        if i >= len(raw):
            raise LexError("Unexpected end of literal after '\\'", line, column)
        code = raw[i]
        if code == 'u' and HEX_DIGITS.match(raw, i + 1):
            result.append(chr(int(raw[i + 1:i + 5], 16)))
            i += 5
            continue
        if code not in ESCAPE_CODES:
            raise LexError(
                f"Unexpected special character '\\{code}'! Escaping backslash must be followed by "
                f"either an escape character code or \\uHHHH", line, column)
        result.append(ESCAPE_CODES[code])
        i += 1
    return ''.join(result)


def escape(text: str) -> str:
    """Inverse of :func:`unescape` for rendering values back as literals."""
    reverse = {v: k for k, v in ESCAPE_CODES.items() if k not in ('"', '\'')}
    return ''.join('\\' + reverse[c] if c in reverse else c for c in text)


def _unexpected_character(source: str, err: UnexpectedCharacters) -> LexError:
    char = err.char
    pos = err.pos_in_stream
    if char == '"':
        message = "Found string with a missing closing quotation mark"
    elif char == '\'':
        message = "Found character with a missing closing apostrophe"
    elif char == '&':
        message = "Found a single '&', did you mean '&&'?"
    elif char == '!':
        message = "Found a single '!', did you mean '!='?"
    elif char == '.' and PATH_BEFORE_DOT.search(source, 0, pos):
        message = "Expected identifier after '.'"
    else:
        message = f"Unexpected character {char!r}."
    return LexError(message, err.line, err.column)


def tokenize(source: str) -> List[Token]:
    """Convert source code into a list of tokens terminated by ``EOF``."""
    tokens: List[Token] = []
    line, column = 1, 1
    try:
        for tok in RUSTSCRIPT_LEXER.lex(source):
            kind = tok.type
            value = str(tok)
            line, column = tok.line, tok.column
            length = tok.end_pos - tok.start_pos
            if kind in SEPARATORS:
                if tokens and tokens[-1].type in SEPARATORS:
                    if kind == 'SEMICOLON':
                        tokens[-1] = replace(tokens[-1], type='SEMICOLON', value=';')
                    continue
            elif kind == 'IDENT' and '.' in value:
                kind = 'IDENT_PATH'
            elif kind in ('TRUE', 'FALSE'):
                kind = 'BOOL'
            elif kind == 'STRING':
                value = unescape(value[1:-1], line, column)
            elif kind == 'CHAR':
                body = value[1:-1]
                if not body:
                    raise LexError("Missing character, '' is not valid.", line, column)
                value = unescape(body, line, column)
                if len(value) != 1:
                    raise LexError(f'Found invalid character, did you mean "{value}"?', line, column)
            tokens.append(Token(kind, value, tok.start_pos, length, line, column))
    except UnexpectedCharacters as err:
        raise _unexpected_character(source, err) from None
    end_line = source.count('\n') + 1
    end_column = len(source) - source.rfind('\n')
    tokens.append(Token('EOF', '', len(source), 0, end_line, end_column))
    return tokens
