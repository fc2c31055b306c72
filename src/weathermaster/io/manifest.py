import hashlib
import json
import os


def dataset_hash(meta: dict) -> str:
  """Stable 16-hex-digit hash of the manifest contents (excluding any previous hash)."""
  body = {k: v for k, v in meta.items() if k != "dataset_hash"}
  s = json.dumps(body, sort_keys=True).encode()
  return hashlib.sha256(s).hexdigest()[:16]


def write_manifest(path: str, meta: dict) -> dict:
  os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
  meta = {**meta, "dataset_hash": dataset_hash(meta)}
  with open(path, "w", encoding="utf-8") as f:
    json.dump(meta, f, indent=2)
  return meta


def read_manifest(path: str) -> dict:
  with open(path, encoding="utf-8") as f:
    return json.load(f)
