import json
import os
import sys
from datetime import datetime, timezone
from pathlib import Path

import requests
from bs4 import BeautifulSoup
from dotenv import load_dotenv

from convert_json_to_js import write_js_bundle
from image_matcher import (
    IMAGE_WEB_PREFIX,
    PREFERRED_TITLE_LANGUAGES,
    assign_images,
    list_image_candidates,
)

load_dotenv()


def get_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return max(0, int(raw))
    except ValueError:
        return default


def get_csv_env_list(name: str, default: list[str]) -> list[str]:
    # Order matters for fallback images and title languages, so keep it.
    raw = os.getenv(name)
    if raw is None:
        return list(default)
    values = [part.strip() for part in raw.split(",") if part.strip()]
    return values or list(default)


def get_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


REPO_ROOT = Path(__file__).resolve().parent

DEFAULT_FALLBACK_IMAGES = [
    "Market.png",
    "Agriculture.jpg",
    "Farming.jpg",
    "Research.jpg",
    "Technology.jpg",
    "Climate.jpg",
]

SUPABASE_URL = os.getenv("SUPABASE_URL", "").strip()
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "").strip()
CONTENTHUB_OUTPUT = Path(os.getenv("CONTENTHUB_OUTPUT", "assets/contenthub.json"))
CONTENTHUB_IMAGE_DIR = Path(os.getenv("CONTENTHUB_IMAGE_DIR", "assets/articles"))
CONTENTHUB_IMAGE_PREFIX = os.getenv("CONTENTHUB_IMAGE_PREFIX", IMAGE_WEB_PREFIX).strip() or IMAGE_WEB_PREFIX
CONTENTHUB_FALLBACK_IMAGES = get_csv_env_list("CONTENTHUB_FALLBACK_IMAGES", DEFAULT_FALLBACK_IMAGES)
CONTENTHUB_TITLE_LANGUAGES = get_csv_env_list("CONTENTHUB_TITLE_LANGUAGES", list(PREFERRED_TITLE_LANGUAGES))
CONTENTHUB_FETCH_LIMIT = max(1, get_int_env("CONTENTHUB_FETCH_LIMIT", 3))
CONTENTHUB_FETCH_TIMEOUT = get_int_env("CONTENTHUB_FETCH_TIMEOUT", 20)
CONTENTHUB_WRITE_JS = get_bool_env("CONTENTHUB_WRITE_JS", False)
CONTENTHUB_PLAIN_SUMMARIES = get_bool_env("CONTENTHUB_PLAIN_SUMMARIES", True)

# (snapshot section, table, columns, extra PostgREST filters)
CONTENT_TABLES = [
    (
        "podcasts",
        "podcasts",
        "id,title,title_multilingual,summary,summary_multilingual,link,created_at",
        {},
    ),
    ("reports", "scientific_reports", "id,title,summary,created_at", {}),
    (
        "articles",
        "generated_articles",
        "id,title,summary,created_at,status",
        {"status": "in.(reviewed,published)"},
    ),
]

# Image consumption order across sections; earlier sections claim images first.
IMAGE_SECTIONS = ("reports", "articles")


def resolve_repo_path(path: Path) -> Path:
    return path if path.is_absolute() else REPO_ROOT / path


def supabase_headers(key: str) -> dict:
    return {
        "apikey": key,
        "Authorization": f"Bearer {key}",
        "Accept": "application/json",
    }


def fetch_table(
    table: str,
    columns: str,
    filters: dict | None = None,
    *,
    base_url: str = SUPABASE_URL,
    key: str = SUPABASE_SERVICE_ROLE_KEY,
    limit: int = CONTENTHUB_FETCH_LIMIT,
    timeout: int = CONTENTHUB_FETCH_TIMEOUT,
) -> list[dict]:
    params = {
        "select": columns,
        "order": "created_at.desc",
        "limit": str(limit),
    }
    params.update(filters or {})

    try:
        res = requests.get(
            f"{base_url.rstrip('/')}/rest/v1/{table}",
            headers=supabase_headers(key),
            params=params,
            timeout=max(5, timeout),
        )
    except Exception as e:
        print(f"[WARN] Failed to fetch {table}: {e}")
        return []

    if not res.ok:
        print(f"[WARN] Failed to fetch {table}: {res.status_code}")
        return []

    try:
        rows = res.json()
    except ValueError as e:
        print(f"[WARN] Invalid JSON from {table}: {e}")
        return []

    if not isinstance(rows, list):
        print(f"[WARN] Unexpected payload from {table}: {type(rows).__name__}")
        return []
    return [row for row in rows if isinstance(row, dict)]


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def fetch_top(
    *,
    base_url: str = SUPABASE_URL,
    key: str = SUPABASE_SERVICE_ROLE_KEY,
    limit: int = CONTENTHUB_FETCH_LIMIT,
) -> dict:
    result: dict = {}
    for section, table, columns, filters in CONTENT_TABLES:
        rows = fetch_table(table, columns, filters, base_url=base_url, key=key, limit=limit)
        print(f"Fetched {len(rows)} rows from {table}")
        result[section] = rows
    result["generated_at"] = utc_timestamp()
    return result


def clean_summary(text: str) -> str:
    if not text:
        return text
    try:
        soup = BeautifulSoup(text, "html.parser")
        return soup.get_text(" ", strip=True)
    except Exception:
        return text


def plain_summary(value):
    if isinstance(value, str):
        return clean_summary(value)
    if isinstance(value, dict):
        return {lang: plain_summary(text) for lang, text in value.items()}
    return value


def clean_record_summaries(record: dict) -> dict:
    cleaned = dict(record)
    for field in ("summary", "summary_multilingual"):
        if field in cleaned:
            cleaned[field] = plain_summary(cleaned[field])
    return cleaned


def build_snapshot(
    data: dict,
    image_dir: Path = CONTENTHUB_IMAGE_DIR,
    *,
    fallback: list[str] | None = None,
    prefix: str = CONTENTHUB_IMAGE_PREFIX,
    languages: list[str] | None = None,
    plain_summaries: bool = CONTENTHUB_PLAIN_SUMMARIES,
) -> dict:
    fallback = CONTENTHUB_FALLBACK_IMAGES if fallback is None else fallback
    languages = CONTENTHUB_TITLE_LANGUAGES if languages is None else languages

    snapshot = {
        "podcasts": list(data.get("podcasts") or []),
        "reports": list(data.get("reports") or []),
        "articles": list(data.get("articles") or []),
        "generated_at": data.get("generated_at") or utc_timestamp(),
    }
    if plain_summaries:
        for section in ("podcasts", "reports", "articles"):
            snapshot[section] = [clean_record_summaries(row) for row in snapshot[section]]

    candidates = list_image_candidates(image_dir)
    print(f"[INFO] {len(candidates)} candidate images in {image_dir}")

    enriched = assign_images(
        [(section, snapshot[section]) for section in IMAGE_SECTIONS],
        candidates,
        fallback,
        prefix=prefix,
        languages=languages,
    )
    snapshot.update(enriched)
    return snapshot


def write_snapshot(snapshot: dict, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(snapshot, f, ensure_ascii=False, indent=2)
    return path


def main() -> int:
    if not SUPABASE_URL or not SUPABASE_SERVICE_ROLE_KEY:
        print("[ERR] Missing SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY env vars.")
        return 1

    out_file = resolve_repo_path(CONTENTHUB_OUTPUT)
    try:
        data = fetch_top()
        snapshot = build_snapshot(data, resolve_repo_path(CONTENTHUB_IMAGE_DIR))
        write_snapshot(snapshot, out_file)
    except Exception as e:
        print(f"[ERR] Failed to build {out_file.name}: {e}")
        return 1

    print(f"[OK] Wrote {out_file}")
    for section in ("podcasts", "reports", "articles"):
        with_image = sum(1 for row in snapshot[section] if row.get("image"))
        suffix = f" ({with_image} with image)" if section in IMAGE_SECTIONS else ""
        print(f"- {section}: {len(snapshot[section])}{suffix}")

    if CONTENTHUB_WRITE_JS:
        js_path = out_file.with_suffix(".js")
        try:
            write_js_bundle(snapshot, js_path)
            print(f"[OK] Wrote to {js_path} (for local browser access)")
        except Exception as e:
            print(f"[WARN] Failed to write {js_path}: {e}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
