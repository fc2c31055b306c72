import sys
from pathlib import Path

import click

from ..io.manifest import dataset_hash, read_manifest


@click.command()
@click.option("--manifest", required=True, type=click.Path(exists=True))
def main(manifest):
  m = read_manifest(manifest)
  months = m.get("months", {})
  if not months:
    click.echo("ERROR: no months found in manifest", err=True)
    sys.exit(1)
  if m.get("dataset_hash") != dataset_hash(m):
    click.echo("ERROR: dataset_hash does not match manifest contents", err=True)
    sys.exit(1)
  total = sum(months.values())
  click.echo(f"Found {len(months)} months with {total:,} rows across {len(m.get('regions', []))} regions")
  empty = [k for k, v in months.items() if v == 0]
  if empty:
    click.echo(f"ERROR: months with zero rows: {', '.join(sorted(empty))}", err=True)
    sys.exit(1)
  ext = m.get("format", "parquet")
  base = Path(manifest).parent
  missing = [k for k in months if not any((base / k.split("-")[1]).glob(f"*.{ext}"))]
  if missing:
    click.echo(f"WARNING: no data files found for {', '.join(sorted(missing))}")
  click.echo("Validation OK")


if __name__ == "__main__":
  main()
