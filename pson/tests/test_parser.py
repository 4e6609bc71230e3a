import pytest

from pson.errors import ParseError, ScanError, TextFormatError
from pson.message import Message, ValueKind
from pson.parser import parse, parse_bytes, parse_string

LYRIC = """# Pearls and swine
bereft: "of" ' me'

long_and_weary: < my: road has: been > # I was lost

in: 'the cities'
  alone <
    in: 'the hills' # no sorrow
  >

# or pity for leaving I feel"""


@pytest.mark.parametrize(
    "text, path, want",
    [
        ("a:1", "a", "1"),
        ("a:true", "a", "true"),
        ('a:"foo" b:false', "b", "false"),
        ("a < in: true >", "a.in", "true"),
        ('a:"b" "c" "d"', "a", "bcd"),
        ("a:'b' 'c' \"d\"", "a", "bcd"),
        ('a < n:1 s:"two" > b { n:2 s:false}', "a.s", "two"),
        ("a: < b <> c: false d < [x]: { y:1 } >>", "a.d.x.y", "1"),
        ("a:1, b:2; c < d < e:3, > >;", "c.d.e", "3"),
        (LYRIC, "long_and_weary.has", "been"),
        (LYRIC, "bereft", "of me"),
    ],
)
def test_parse_paths(text, path, want):
    msg = parse_string(text)
    assert msg.lookup(path).text == want


@pytest.mark.parametrize(
    "text",
    [
        "<>",
        ":true",
        "1:true",
        "true:'false'",
        "a <",
        "a: >",
        "a {",
        "a: }",
        "a: '",
        'a: "',
        "a < b: 1 }",
        "a",
        "a 1",
        "[a/b/c]: wrong",
    ],
)
def test_parse_errors(text):
    with pytest.raises(TextFormatError):
        parse_string(text)


def test_empty_input_is_absent():
    assert parse_string("") is None
    assert parse_string("  # only a comment\n\n") is None


def test_type_name_requires_message_value():
    with pytest.raises(ParseError, match="requires a message value"):
        parse_string("[a/b/c]: wrong")


def test_type_name_field():
    msg = parse_string("[pkg.ext] { v: 1 }")
    (item,) = msg
    assert item.type_name
    assert item.name == "pkg.ext"
    assert item.key == "[pkg.ext]"
    assert msg.get("[pkg.ext]") is item
    assert item.values[0].msg.lookup("v").text == "1"


def test_value_kinds():
    msg = parse_string('a: 1 b: "s" c: true d: FOO e: [x.y] f: false g {}')
    kinds = [item.values[0].kind for item in msg]
    assert kinds == [
        ValueKind.NUMBER,
        ValueKind.STRING,
        ValueKind.BOOL,
        ValueKind.NAME,
        ValueKind.TYPE_REF,
        ValueKind.BOOL,
        ValueKind.MESSAGE,
    ]


def test_empty_message_is_present():
    msg = parse_string("a {} b <>")
    for item in msg:
        assert item.values[0].is_message
        assert item.values[0].msg == Message()


def test_repeated_fields_keep_order():
    msg = parse_string("b: 1 a: 2 b: 3")
    assert [(item.name, item.values[0].text) for item in msg] == [("b", "1"), ("a", "2"), ("b", "3")]


def test_strings_do_not_concatenate_across_fields():
    msg = parse_string('a: "x" b: "y"')
    assert [item.values[0].text for item in msg] == ["x", "y"]


def test_mismatched_closer_names_both_tokens():
    with pytest.raises(ParseError) as err:
        parse_string("a < b: 1 }")
    assert '"}"' in str(err.value)
    assert '">"' in str(err.value)


def test_error_line_numbers():
    with pytest.raises(ParseError) as err:
        parse_string("a: 1\nb: <\n  c: 1 }")
    assert err.value.line == 3
    assert str(err.value).startswith("line 3: ")


def test_lexical_errors_propagate():
    with pytest.raises(ScanError) as err:
        parse_string("a: 1\nb: 'broken")
    assert err.value.line == 2


def test_nesting_depth_cap():
    text = "a<" * 5 + ">" * 5
    assert parse_string(text, max_depth=5) is not None
    with pytest.raises(ParseError, match="nesting"):
        parse_string(text, max_depth=4)


def test_parse_stream_and_bytes(tmp_path):
    sample = tmp_path / "msg.txtpb"
    sample.write_text("name: 'wheel' size: 3\n", encoding="utf-8")
    with open(sample, encoding="utf-8") as f:
        msg = parse(f)
    assert msg.lookup("size").text == "3"
    assert parse_bytes(b"k: 'v'").lookup("k").text == "v"
