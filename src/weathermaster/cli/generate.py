import json
import logging
import sys
from collections import Counter
from pathlib import Path

import click
import yaml
from pydantic import ValidationError

from ..core.timebase import Timebase
from ..errors import WeatherMasterError
from ..io.manifest import write_manifest
from ..io.schema import WeatherRow, region_row
from ..io.write_jsonl import write_jsonl
from ..io.write_parquet import write_rows_parquet
from ..model.regions import load_region_templates
from ..model.settings import load_settings
from ..service import WeatherService

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

FORMATS = ("parquet", "jsonl")


def month_rows(service, region, year, month, conditions=None):
  for date in Timebase.for_year(year, month, month).hours():
    row = WeatherRow(**service.generate_weather(region, date).to_row()).model_dump()
    if conditions is not None:
      conditions[row["condition"]] += 1
    yield row


def build_service(cfg):
  settings = load_settings(cfg.get("engine_config"))
  regions = load_region_templates()
  if cfg.get("regions_file"):
    regions.update(load_region_templates(cfg["regions_file"]))
  wanted = cfg.get("regions") or "all"
  if wanted != "all":
    unknown = [r for r in wanted if r not in regions]
    if unknown:
      raise WeatherMasterError(f"Unknown regions in config: {', '.join(unknown)}")
    regions = {r: regions[r] for r in wanted}
  return WeatherService(settings=settings, regions=regions)


@click.command()
@click.option("--config", required=True, type=click.Path(exists=True))
@click.option("--format", "fmt", type=click.Choice(FORMATS), default=None, help="Override output.format")
def main(config, fmt):
  cfg = yaml.safe_load(Path(config).read_text(encoding="utf-8")) or {}
  year = int(cfg.get("year", 1))
  first_month, last_month = (int(m) for m in cfg.get("months", (1, 12)))
  output_cfg = cfg.get("output", {})
  out_dir = Path(output_cfg.get("path", "out/"))
  fmt = fmt or output_cfg.get("format", "parquet")
  if fmt not in FORMATS:
    click.echo(f"ERROR: unsupported output format {fmt!r}", err=True)
    sys.exit(1)
  if not 1 <= first_month <= last_month <= 12:
    click.echo(f"ERROR: invalid month range {first_month}-{last_month}", err=True)
    sys.exit(1)
  try:
    service = build_service(cfg)
  except (WeatherMasterError, ValidationError) as e:
    click.echo(f"ERROR: {e}", err=True)
    sys.exit(1)

  year_dir = out_dir / f"{year:04d}"
  meta = {"year": year, "format": fmt, "regions": sorted(service.regions), "months": {}}
  region_rows = Counter()
  conditions = Counter()
  for month in range(first_month, last_month + 1):
    total = 0
    for region_id, region in service.regions.items():
      path = year_dir / f"{month:02d}" / f"weather_{region_id}_{year:04d}_{month:02d}.{fmt}"
      rows = month_rows(service, region, year, month, conditions)
      if fmt == "parquet":
        written = write_rows_parquet(rows, str(path))
      else:
        written = write_jsonl(rows, str(path))
      region_rows[region_id] += written
      total += written
    # snapshots for finished months are never requested again
    service.clear_cache()
    meta["months"][f"{year:04d}-{month:02d}"] = total
    logger.info(f"Wrote {total:,} rows for {year:04d}-{month:02d}")
  meta["region_rows"] = dict(sorted(region_rows.items()))
  meta["conditions"] = dict(conditions.most_common())

  regions_path = year_dir / "regions.json"
  regions_path.parent.mkdir(parents=True, exist_ok=True)
  regions_path.write_text(json.dumps([region_row(r) for r in service.regions.values()], indent=2), encoding="utf-8")
  write_manifest(str(year_dir / "manifest.json"), meta)
  click.echo(f"Done. Wrote dataset to {out_dir}")


if __name__ == "__main__":
  main()
