import json

from specharvest.cli.main import SpecHarvestCLI


def test_extract_command_writes_specs(tmp_path, monkeypatch, query_spec_source):
    monkeypatch.chdir(tmp_path)
    upstream = tmp_path / "upstream"
    upstream.mkdir()
    (upstream / "QuerySpec.hs").write_text(query_spec_source, encoding="utf-8")

    code = SpecHarvestCLI().run(["extract", str(upstream), str(tmp_path / "specs")])

    assert code == 0
    stats = json.loads((tmp_path / "specs" / "_stats.json").read_text())
    assert stats["totalTests"] == 7


def test_replay_without_target_is_a_usage_error(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert SpecHarvestCLI().run(["replay", str(tmp_path)]) == 2


def test_bad_settings_file_is_reported(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "specharvest.yaml").write_text("jobs: nope\n", encoding="utf-8")
    assert SpecHarvestCLI().run(["extract"]) == 2


def test_invalid_jobs_flag_is_reported(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "upstream").mkdir()
    assert SpecHarvestCLI().run(["extract", str(tmp_path / "upstream"), "-j", "0"]) == 2
