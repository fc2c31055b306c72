import json

import yaml
from click.testing import CliRunner

from weathermaster.cli import generate, summarize, validate


def write_config(tmp_path, **overrides):
  cfg = {
    "year": 1,
    "months": [2, 2],
    "regions": ["continental-prairie"],
    "output": {"path": str(tmp_path / "out"), "format": "jsonl"},
  }
  cfg.update(overrides)
  path = tmp_path / "cfg.yaml"
  path.write_text(yaml.safe_dump(cfg), encoding="utf-8")
  return path


def test_generate_validate_summarize(tmp_path):
  runner = CliRunner()
  result = runner.invoke(generate.main, ["--config", str(write_config(tmp_path))])
  assert result.exit_code == 0, result.output
  manifest = tmp_path / "out" / "0001" / "manifest.json"
  meta = json.loads(manifest.read_text(encoding="utf-8"))
  assert meta["months"] == {"0001-02": 28 * 24}
  assert meta["regions"] == ["continental-prairie"]
  assert meta["region_rows"] == {"continental-prairie": 28 * 24}
  assert sum(meta["conditions"].values()) == 28 * 24
  data = tmp_path / "out" / "0001" / "02" / "weather_continental-prairie_0001_02.jsonl"
  assert len(data.read_text(encoding="utf-8").splitlines()) == 28 * 24

  result = runner.invoke(validate.main, ["--manifest", str(manifest)])
  assert result.exit_code == 0, result.output
  assert "Validation OK" in result.output

  result = runner.invoke(summarize.main, ["--manifest", str(manifest)])
  assert result.exit_code == 0
  assert "0001-02" in result.output
  assert "672" in result.output
  assert "continental-prairie" in result.output
  assert "Condition" in result.output


def test_generate_rejects_unknown_region(tmp_path):
  result = CliRunner().invoke(generate.main, ["--config", str(write_config(tmp_path, regions=["atlantis"]))])
  assert result.exit_code == 1
  assert "atlantis" in result.output


def test_validate_rejects_tampered_manifest(tmp_path):
  path = tmp_path / "manifest.json"
  path.write_text(json.dumps({"months": {"0001-01": 5}, "dataset_hash": "0" * 16}), encoding="utf-8")
  result = CliRunner().invoke(validate.main, ["--manifest", str(path)])
  assert result.exit_code == 1


def test_validate_rejects_empty_manifest(tmp_path):
  path = tmp_path / "manifest.json"
  path.write_text(json.dumps({"months": {}}), encoding="utf-8")
  result = CliRunner().invoke(validate.main, ["--manifest", str(path)])
  assert result.exit_code == 1
