import json

import pytest

from specharvest.core.engine import ExtractionEngine, output_name
from specharvest.core.settings import Settings

SIMPLE_SPEC = '''module Feature.Query.JsonOperatorSpec where

spec :: SpecWith ((), Application)
spec =
  describe "json operators" $ do
    it "reads a field" $
      get "/items?select=data->a" `shouldRespondWith` 200
    it "uses a custom predicate" $
      get "/items" `shouldSatisfy` isOk
'''


@pytest.fixture
def upstream(tmp_path, query_spec_source, main_hs_source):
    root = tmp_path / "upstream"
    root.mkdir()
    (root / "QuerySpec.hs").write_text(query_spec_source, encoding="utf-8")
    (root / "JsonOperatorSpec.hs").write_text(SIMPLE_SPEC, encoding="utf-8")
    (root / "Main.hs").write_text(main_hs_source, encoding="utf-8")
    (root / "SpecHelper.hs").write_text("module SpecHelper where\n", encoding="utf-8")
    return root


def _settings(upstream, tmp_path, **overrides):
    return Settings(upstream_dir=str(upstream), output_dir=str(tmp_path / "specs"), **overrides)


@pytest.mark.parametrize("spec_name,name", [
    ("QuerySpec", "query"),
    ("JsonOperatorSpec", "json-operator"),
    ("AndOrParamsSpec", "and-or-params"),
])
def test_output_name(spec_name, name):
    assert output_name(spec_name) == name


def test_discover_only_spec_files(upstream, tmp_path):
    engine = ExtractionEngine(_settings(upstream, tmp_path))
    assert [p.name for p in engine.discover()] == ["JsonOperatorSpec.hs", "QuerySpec.hs"]


def test_run_writes_all_artifacts(upstream, tmp_path):
    stats = ExtractionEngine(_settings(upstream, tmp_path)).run()
    out = tmp_path / "specs"

    query = json.loads((out / "query.json").read_text())
    assert query["file"] == "Query"
    assert query["config"] == "default"
    assert len(query["tests"]) == 7
    assert "flagged" not in query

    operators = json.loads((out / "json-operator.json").read_text())
    assert operators["tests"][0]["request"]["path"] == "/items?select=data->a"

    flagged = json.loads((out / "_flagged.json").read_text())
    assert len(flagged) == 5
    assert {f["file"] for f in flagged} == {"QuerySpec", "JsonOperatorSpec"}
    assert any(f["reason"].startswith("shouldSatisfy") for f in flagged)

    on_disk = json.loads((out / "_stats.json").read_text())
    assert on_disk == {
        "totalFiles": 2,
        "totalTests": 8,
        "totalFlagged": 5,
        "files": [
            {"name": "JsonOperatorSpec", "tests": 1, "flagged": 1},
            {"name": "QuerySpec", "tests": 7, "flagged": 4},
        ],
    }
    assert stats["errors"] == []


def test_parallel_run_matches_serial_run(upstream, tmp_path):
    ExtractionEngine(_settings(upstream, tmp_path)).run()
    serial = (tmp_path / "specs" / "query.json").read_text()

    parallel_settings = _settings(upstream, tmp_path, jobs=2)
    parallel_settings.output_dir = str(tmp_path / "parallel")
    ExtractionEngine(parallel_settings).run()

    assert (tmp_path / "parallel" / "query.json").read_text() == serial


def test_unreadable_file_is_reported_and_skipped(upstream, tmp_path):
    (upstream / "BrokenSpec.hs").write_bytes(b"\xff\xfe\xfa\x00garbage")
    reports = []

    stats = ExtractionEngine(_settings(upstream, tmp_path)).run(on_file=reports.append)

    assert stats["totalFiles"] == 2
    assert [e["file_path"] for e in stats["errors"]] == ["BrokenSpec.hs"]
    assert [r["success"] for r in reports].count(False) == 1


def test_missing_upstream_directory(tmp_path):
    engine = ExtractionEngine(Settings(upstream_dir=str(tmp_path / "nope"), output_dir=str(tmp_path / "out")))
    with pytest.raises(FileNotFoundError):
        engine.discover()


def test_failed_write_is_reported_and_other_files_continue(upstream, tmp_path):
    out = tmp_path / "specs"
    (out / "query.json").mkdir(parents=True)

    stats = ExtractionEngine(_settings(upstream, tmp_path)).run()

    assert [e["status"] for e in stats["errors"]] == ["WRITE_ERROR"]
    assert stats["errors"][0]["file_path"] == "QuerySpec.hs"
    assert [f["name"] for f in stats["files"]] == ["JsonOperatorSpec"]
    assert (out / "json-operator.json").exists()
    assert json.loads((out / "_stats.json").read_text())["totalFiles"] == 1
