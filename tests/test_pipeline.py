import logging

import pytest

from specharvest.extraction.pipeline import ExtractionPipeline, spec_file_name
from specharvest.extraction.segmenter import count_leaf_declarations
from specharvest.core.models import HTTP_METHODS


def _run(body, strict=False):
    source = 'spec = do\n  describe "Items" $ do\n' + body
    return ExtractionPipeline(strict_match_headers=strict).run("ItemsSpec.hs", source)


def test_simple_get_scenario():
    result = ExtractionPipeline().run(
        "ItemsSpec.hs", 'it "gets a list" $ get "/items" `shouldRespondWith` 200'
    )
    assert result.flagged == []
    assert [t.to_dict() for t in result.tests] == [{
        "description": ["gets a list"],
        "request": {"method": "GET", "path": "/items", "headers": [], "body": None},
        "expected": {
            "status": 200,
            "body": None,
            "bodyExact": True,
            "headers": [],
            "headersAbsent": [],
            "headersContain": [],
        },
    }]


def test_side_effect_block_is_flagged_whatever_else_it_contains():
    result = _run(
        '    it "waits" $ do\n'
        '      liftIO $ threadDelay 10\n'
        '      get "/items" `shouldRespondWith` 200\n'
    )
    assert result.tests == []
    assert len(result.flagged) == 1
    assert result.flagged[0].reason.startswith("liftIO")
    assert result.flagged[0].line == 3


def test_commented_out_assertion_counts_as_missing():
    result = _run('    it "x" $ get "/a" -- `shouldRespondWith` 200\n')
    assert [f.reason for f in result.flagged] == ["no assertion found"]


def test_unknown_request_shape_is_a_parse_failure():
    result = _run('    it "x" $ customCall "/a" `shouldRespondWith` 200\n')
    assert [f.reason for f in result.flagged] == ["parse failure"]


def test_unknown_method_is_a_parse_failure():
    result = _run('    it "x" $ request methodTrace "/a" [] "" `shouldRespondWith` 200\n')
    assert [f.reason for f in result.flagged] == ["parse failure"]


def test_out_of_range_status_is_a_parse_failure():
    result = _run('    it "x" $ get "/a" `shouldRespondWith` 999\n')
    assert [f.reason for f in result.flagged] == ["parse failure"]


def test_uninterpretable_request_body_is_a_parse_failure():
    result = _run('    it "x" $ post "/a" payload `shouldRespondWith` 201\n')
    assert [f.reason for f in result.flagged] == ["parse failure"]


def test_description_words_do_not_leak_into_request():
    result = _run('    it "does not post anything" $ get "/a" `shouldRespondWith` 200\n')
    assert result.tests[0].request.method == "GET"
    assert result.tests[0].description == ["Items", "does not post anything"]


def test_post_with_match_block():
    result = _run(
        '    it "creates" $\n'
        '      post "/items" [json|{id: 10}|]\n'
        '        `shouldRespondWith` ""\n'
        '        { matchStatus = 201\n'
        '        , matchHeaders = [matchHeaderAbsent hContentType]\n'
        '        }\n'
    )
    test = result.tests[0]
    assert test.request.method == "POST"
    assert test.request.body == '{"id":10}'
    assert test.expected.status == 201
    assert test.expected.body == ""
    assert test.expected.headers_absent == ["Content-Type"]


def test_generic_request_with_tuple_headers_and_string_body():
    result = _run(
        '    it "upserts" $\n'
        '      request methodPut "/items?id=eq.1" [("Prefer", "return=representation")]\n'
        '        [json| {"id": 1} |]\n'
        '        `shouldRespondWith` [json|[{"id": 1}]|]\n'
    )
    request = result.tests[0].request
    assert request.method == "PUT"
    assert request.headers == [("Prefer", "return=representation")]
    assert request.body == '{"id":1}'
    assert result.tests[0].expected.body == [{"id": 1}]


def test_escaped_quotes_in_path():
    result = _run('    it "x" $ get "/items?name=eq.\\"a b\\"" `shouldRespondWith` 200\n')
    assert result.tests[0].request.path == '/items?name=eq."a b"'


def test_read_only_multi_assertion_is_split_and_numbered():
    result = _run(
        '    it "pages" $ do\n'
        '      get "/items?limit=1" `shouldRespondWith` 200\n'
        '      get "/items?limit=2" `shouldRespondWith` 404\n'
    )
    assert [t.description for t in result.tests] == [
        ["Items", "pages (1)"],
        ["Items", "pages (2)"],
    ]
    assert [t.request.path for t in result.tests] == ["/items?limit=1", "/items?limit=2"]
    assert [t.expected.status for t in result.tests] == [200, 404]


def test_multi_assertion_with_write_is_flagged():
    result = _run(
        '    it "writes" $ do\n'
        '      post "/items" [json|{"id": 1}|] `shouldRespondWith` 201\n'
        '      get "/items" `shouldRespondWith` 200\n'
    )
    assert result.tests == []
    assert [f.reason for f in result.flagged] == ["multiple assertions with mutations"]


def test_multi_assertion_on_one_line_is_not_guessed():
    result = _run(
        '    it "chained" $ get "/a" `shouldRespondWith` 200 >> get "/b" `shouldRespondWith` 200\n'
    )
    assert result.tests == []
    assert [f.reason for f in result.flagged] == ["parse failure in split block"]


def test_failed_split_piece_is_flagged_with_its_number():
    result = _run(
        '    it "mixed" $ do\n'
        '      get "/a" `shouldRespondWith` 200\n'
        '      request methodGet "/b" unknownHeaders `shouldRespondWith` 200\n'
    )
    assert [t.description for t in result.tests] == [["Items", "mixed (1)"]]
    assert [(f.description, f.reason) for f in result.flagged] == [
        (["Items", "mixed (2)"], "parse failure in split block"),
    ]


UNRESOLVED_MATCHERS = (
    '    it "custom matcher" $\n'
    '      get "/a" `shouldRespondWith` [json|[]|]\n'
    '        { matchHeaders = [customMatcher] }\n'
)


def test_unresolvable_match_headers_are_dropped_by_default():
    result = _run(UNRESOLVED_MATCHERS)
    assert len(result.tests) == 1
    assert result.tests[0].expected.headers == []
    assert result.tests[0].expected.body == []


def test_unresolvable_match_headers_are_flagged_in_strict_mode():
    result = _run(UNRESOLVED_MATCHERS, strict=True)
    assert result.tests == []
    assert [f.reason for f in result.flagged] == ["parse failure"]


def test_query_spec_fixture(query_spec_source):
    result = ExtractionPipeline().run("QuerySpec.hs", query_spec_source, "default")
    assert result.file == "Query"
    assert len(result.tests) == 7
    assert sorted(f.reason for f in result.flagged) == [
        "liftIO: side-effect",
        "multiple assertions with mutations",
        "no assertion found",
        "pendingWith: skipped upstream",
    ]

    by_name = {t.description[-1]: t for t in result.tests}
    ranged = by_name["returns a limited range"]
    assert ranged.request.headers == [("Range-Unit", "items"), ("Range", "0-1")]
    assert ranged.expected.headers == [("Content-Range", "0-1/*")]

    csv = by_name["returns csv through a let binding"]
    assert csv.request.headers == [("Accept", "text/csv")]
    assert csv.expected.body == "id\n1"

    filtered = by_name["filters by id"]
    assert filtered.description == ["Querying a table", "with filters", "filters by id"]
    assert filtered.expected.body == [{"id": 5}]


def test_every_leaf_is_accounted_for(query_spec_source):
    result = ExtractionPipeline().run("QuerySpec.hs", query_spec_source)
    outcomes = {tuple(t.description) for t in result.tests} | {tuple(f.description) for f in result.flagged}
    assert len(result.tests) + len(result.flagged) >= count_leaf_declarations(query_spec_source)
    assert len(outcomes) == len(result.tests) + len(result.flagged)

    for test in result.tests:
        assert test.description and all(test.description)
        assert 100 <= test.expected.status <= 599
        assert test.request.method in HTTP_METHODS
    for flagged in result.flagged:
        assert flagged.reason


@pytest.mark.parametrize("filename,name", [
    ("QuerySpec.hs", "Query"),
    ("Helpers.hs", "Helpers"),
    ("JsonOperatorSpec.hs", "JsonOperator"),
])
def test_spec_file_name(filename, name):
    assert spec_file_name(filename) == name


def test_unresolvable_request_headers_fall_back_to_empty_list():
    result = _run('    it "x" $ request methodGet "/a" [("A","1"), mystery] "" `shouldRespondWith` 200\n')
    assert result.flagged == []
    assert result.tests[0].request.headers == []
    assert result.tests[0].request.body is None


def test_mempty_body_after_bare_header_helper():
    result = _run('    it "x" $ request methodGet "/a" planHdr mempty `shouldRespondWith` 200\n')
    assert result.flagged == []
    request = result.tests[0].request
    assert request.headers == [("Accept", "application/vnd.pgrst.plan+json")]
    assert request.body is None


def test_unparenthesized_header_call_before_json_body():
    result = _run(
        '    it "x" $ request methodPost "/a" authHeaderJWT "tok" [json|{"a":1}|]\n'
        '      `shouldRespondWith` 201\n'
    )
    assert result.flagged == []
    request = result.tests[0].request
    assert request.method == "POST"
    assert request.headers == [("Authorization", "Bearer tok")]
    assert request.body == '{"a":1}'


def test_non_finite_json_bodies_are_parse_failures():
    result = _run(
        '    it "x" $ post "/a" [json|{"v": NaN}|] `shouldRespondWith` 201\n'
        '    it "y" $ get "/a" `shouldRespondWith` [json|{"v": Infinity}|]\n'
    )
    assert result.tests == []
    assert [f.reason for f in result.flagged] == ["parse failure", "parse failure"]


def test_null_expected_body_is_logged(caplog):
    with caplog.at_level(logging.DEBUG, logger="specharvest.assertion"):
        result = _run('    it "x" $ get "/a" `shouldRespondWith` [json|null|]\n')
    assert result.tests[0].expected.body is None
    assert "decodes to null" in caplog.text
