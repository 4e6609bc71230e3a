import pytest

from pson.combine import combine
from pson.errors import ValueCoercionError
from pson.message import Field, Message
from pson.parser import parse_string
from pson.render_json import render_json
from pson.text_format import TextFormat

CONFIGS = [
    TextFormat(compact=False, curly=False, indent="@"),
    TextFormat(compact=False, curly=True, indent="@"),
    TextFormat(compact=True, curly=False, indent="@"),
    TextFormat(compact=True, curly=True, indent="@"),
]


def _answers(verbose, compact):
    verbose = verbose.replace("*", "\n")
    compact = compact.replace("*", "\n")
    curly = str.maketrans("<>", "{}")
    return [verbose, verbose.translate(curly), compact, compact.translate(curly)]


@pytest.mark.parametrize(
    "text, verbose, compact",
    [
        ("a<\n>", "a <>", "a <>"),
        ("a: 1", "a: 1", "a:1"),
        ('a:\n\t"foo"\n', 'a: "foo"', 'a:"foo"'),
        ("a<n:1>", "a <*@n: 1*>", "a <n:1>"),
        (
            'a<n:1 s:"foo">a<n:2 s:"bar">',
            'a <*@n: 1*@s: "foo"*>*a <*@n: 2*@s: "bar"*>',
            'a <n:1 s:"foo"> a <n:2 s:"bar">',
        ),
        ("a { b {} } a {} c:<>", "a <*@b <>*>*a <>*c <>", "a <b <>> a <> c <>"),
        (
            "a{b{c:1 c:2 c:3}d{e{f:63}}}",
            "a <*@b <*@@c: 1*@@c: 2*@@c: 3*@>*@d <*@@e <*@@@f: 63*@@>*@>*>",
            "a <b <c:1 c:2 c:3> d <e <f:63>>>",
        ),
        ("a:FOO a:BAR a:BAZ", "a: FOO*a: BAR*a: BAZ", "a:FOO a:BAR a:BAZ"),
    ],
)
def test_text_formatting(text, verbose, compact):
    msg = combine(parse_string(text))
    for cfg, want in zip(CONFIGS, _answers(verbose, compact)):
        assert cfg.text(msg) == want


def test_text_empty_message():
    assert TextFormat().text(Message()) == ""


def test_text_default_indent_is_two_spaces():
    assert TextFormat().text(parse_string("a { b: 1 }")) == "a <\n  b: 1\n>"


def test_text_type_names_and_escapes():
    msg = parse_string(r'[pkg.ext] { s: "say \"hi\"\n" t: [x.Y] }')
    assert TextFormat(compact=True).text(msg) == r'[pkg.ext] <s:"say \"hi\"\n" t:[x.Y]>'


def test_text_zero_valued_field():
    msg = Message([Field("a", []), Field("b", [])])
    assert TextFormat(compact=True).text(msg) == "a<> b<>"


def test_text_output_parses_back():
    msg = combine(parse_string('a { b: 1 b: "two" [e.x] { c: true } } d: NAME'))
    for compact in (False, True):
        for curly in (False, True):
            cfg = TextFormat(compact=compact, curly=curly)
            assert combine(parse_string(cfg.text(msg))) == msg


def test_json_compact():
    msg = combine(parse_string('a:1 b:"x" a:2 c { d: true }'))
    assert render_json(msg) == '{"a":[1,2],"b":"x","c":{"d":true}}'


def test_json_indent_and_prefix():
    msg = parse_string("a:1")
    assert render_json(msg, indent="  ") == '{\n  "a": 1\n}'
    assert render_json(msg, indent="  ", prefix="#") == '{\n#  "a": 1\n#}'


def test_json_keeps_non_ascii_text():
    assert render_json(parse_string("s: 'ünï'")) == '{"s":"ünï"}'


def test_json_type_names():
    msg = parse_string("[pkg.ext] { v: [a.B] }")
    assert render_json(msg) == '{"[pkg.ext]":{"v":"[a.B]"}}'


def test_json_rejects_number_outside_float_range():
    with pytest.raises(ValueCoercionError, match="out of range"):
        render_json(combine(parse_string("a: 1e999")))
