import os
from typing import Iterable

import pyarrow as pa
import pyarrow.parquet as pq

WEATHER_SCHEMA = pa.schema([
  ("region_id", pa.string()),
  ("year", pa.int32()),
  ("month", pa.int8()),
  ("day", pa.int8()),
  ("hour", pa.int8()),
  ("temperature", pa.int16()),
  ("feels_like", pa.int16()),
  ("condition", pa.string()),
  ("wind_speed", pa.int16()),
  ("wind_direction", pa.string()),
  ("humidity", pa.int8()),
  ("dew_point", pa.float32()),
  ("precip_type", pa.string()),
  ("precip_intensity", pa.string()),
  ("precip_rate", pa.float32()),
  ("pressure", pa.float32()),
  ("pressure_trend", pa.string()),
  ("cloud_cover", pa.int8()),
  ("visibility", pa.float32()),
  ("pattern", pa.string()),
])


def write_rows_parquet(rows_iter: Iterable[dict], path: str) -> int:
  """Write weather rows to a snappy parquet file; returns the row count (0 writes nothing)."""
  rows = list(rows_iter)
  if not rows:
    return 0
  os.makedirs(os.path.dirname(path), exist_ok=True)
  table = pa.Table.from_pylist(rows, schema=WEATHER_SCHEMA)
  pq.write_table(table, path, compression="snappy")
  return len(rows)


def read_rows_parquet(path: str) -> list:
  return pq.read_table(path).to_pylist()
