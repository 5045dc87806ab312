from specharvest.extraction.lexer import (
    collapse_whitespace,
    find_matching,
    quasi_span,
    split_top_level,
    strip_comments,
    unescape,
    unescape_path,
)


def test_strip_comments_keeps_dashes_inside_strings():
    line = 'get "/items?name=eq.a--b" `shouldRespondWith` 200 -- trailing note'
    assert strip_comments(line) == 'get "/items?name=eq.a--b" `shouldRespondWith` 200 '


def test_strip_comments_respects_open_quasi_literal_across_lines():
    text = '[json|{\n  "a": 1 -- not a comment\n}|] -- a comment'
    cleaned = strip_comments(text).split("\n")
    assert cleaned[1] == '  "a": 1 -- not a comment'
    assert cleaned[2] == "}|] "


def test_strip_comments_handles_escaped_quotes():
    line = r'get "/x?a=\"--\"" -- gone'
    assert strip_comments(line) == r'get "/x?a=\"--\"" '


def test_find_matching_ignores_delimiters_in_strings():
    text = '[("a]", "b")] rest'
    assert find_matching(text, 0, "[", "]") == 12


def test_find_matching_unterminated_returns_minus_one():
    assert find_matching("(rangeHdrs $ ByteRangeFrom 1", 0, "(", ")") == -1


def test_split_top_level_respects_nesting_and_strings():
    parts = split_top_level('("A", "x,y"), acceptHdrs "a", [1, 2]')
    assert [p.strip() for p in parts] == ['("A", "x,y")', 'acceptHdrs "a"', "[1, 2]"]


def test_unescape_and_paths():
    assert unescape(r'a\"b\\c\nd') == 'a"b\\c\nd'
    assert unescape_path(r'/items?name=eq.\"x\"') == '/items?name=eq."x"'


def test_quasi_span_and_whitespace():
    assert quasi_span('foo [json| {"a": 1} |] bar') == '{"a": 1}'
    assert quasi_span("no literal here") is None
    assert collapse_whitespace("  get\n   \"/a\"  ") == 'get "/a"'
