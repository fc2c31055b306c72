import click

from ..io.manifest import read_manifest


def print_table(title, counts, total=None):
  rows = list(counts.items())
  width = max([len(title)] + [len(k) for k, _ in rows])
  click.echo(title.ljust(width) + " | Rows")
  click.echo("-" * width + "-|--------")
  for k, v in rows:
    share = f" ({v / total:.1%})" if total else ""
    click.echo(k.ljust(width) + f" | {v:,}{share}")


@click.command()
@click.option("--manifest", required=True, type=click.Path(exists=True))
@click.option("--top", default=8, show_default=True, help="Number of conditions to list")
def main(manifest, top):
  m = read_manifest(manifest)
  months = dict(sorted(m.get("months", {}).items()))
  total = sum(months.values())
  print_table("Month", months)
  if m.get("region_rows"):
    click.echo("")
    print_table("Region", m["region_rows"])
  conditions = m.get("conditions") or {}
  if conditions and top > 0:
    click.echo("")
    print_table("Condition", dict(list(conditions.items())[:top]), total)
  click.echo(f"Total rows: {total:,}, Regions: {len(m.get('regions', []))}, Year: {m.get('year')}")
  click.echo(f"Dataset hash: {m.get('dataset_hash')}")


if __name__ == "__main__":
  main()
