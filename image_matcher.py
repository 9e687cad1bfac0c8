import re
import sys
import unicodedata
from collections.abc import Iterable, Mapping
from pathlib import Path

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".gif"}
IMAGE_WEB_PREFIX = "assets/articles"
PREFERRED_TITLE_LANGUAGES = ("en", "fr", "es")

# A single exact token hit (2) or two partial hits (1 + 1).
MIN_MATCH_SCORE = 2
MIN_TOKEN_LEN = 3


def safe_console_text(text: str) -> str:
    encoding = getattr(sys.stdout, "encoding", None) or "utf-8"
    return text.encode(encoding, errors="replace").decode(encoding, errors="replace")


def strip_diacritics(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")


def normalize_text(text) -> str:
    if text is None:
        return ""
    value = text if isinstance(text, str) else str(text)
    if not value:
        return ""

    try:
        value = strip_diacritics(value).lower()
    except Exception:
        value = value.lower()

    value = re.sub(r"[\s_]+", " ", value)
    value = re.sub(r"[^a-z0-9 ]", " ", value)
    return re.sub(r" +", " ", value).strip()


def tokenize(text) -> list[str]:
    return [token for token in normalize_text(text).split(" ") if token]


def filename_tokens(filename: str) -> list[str]:
    return tokenize(Path(filename).stem)


def pick_title_string(title_field, languages: Iterable[str] = PREFERRED_TITLE_LANGUAGES) -> str:
    if title_field is None:
        return ""
    if isinstance(title_field, str):
        return title_field
    if isinstance(title_field, Mapping):
        for lang in languages:
            value = title_field.get(lang)
            if isinstance(value, str) and value:
                return value
        for value in title_field.values():
            if isinstance(value, str) and value:
                return value
        return ""
    return str(title_field)


def score_candidate(title_tokens: set[str], tokens: Iterable[str]) -> int:
    # Short words on either side never score.
    words = {word for word in title_tokens if len(word) >= MIN_TOKEN_LEN}
    score = 0
    for token in tokens:
        if len(token) < MIN_TOKEN_LEN:
            continue
        if token in words:
            score += 2
        elif any(token in word or word in token for word in words):
            score += 1
    return score


def best_image_for_title(title: str, candidates: Iterable[str], used: set[str]) -> str | None:
    """Pick the unused candidate whose stem best overlaps the title.

    Ties keep the earliest candidate. The winner is added to ``used``.
    """
    title_tokens = set(tokenize(title))
    if not title_tokens:
        return None

    best_name = None
    best_score = 0
    for name in candidates:
        if name in used:
            continue
        tokens = filename_tokens(name)
        if not tokens:
            continue
        score = score_candidate(title_tokens, tokens)
        if score > best_score:
            best_name, best_score = name, score

    if best_name is None or best_score < MIN_MATCH_SCORE:
        return None
    used.add(best_name)
    return best_name


def filter_fallback_images(fallback: Iterable[str], candidates: Iterable[str]) -> list[str]:
    available = set(candidates)
    kept: list[str] = []
    for name in fallback:
        if name in available and name not in kept:
            kept.append(name)
    return kept


def next_fallback_image(fallback: Iterable[str], used: set[str]) -> str | None:
    for name in fallback:
        if name not in used:
            used.add(name)
            return name
    return None


def list_image_candidates(image_dir: Path) -> list[str]:
    base_dir = Path(image_dir)
    if not base_dir.is_dir():
        print(f"[WARN] Image directory not found: {base_dir}")
        return []

    try:
        entries = list(base_dir.iterdir())
    except Exception as e:
        print(f"[WARN] Failed to list {base_dir}: {e}")
        return []

    names = [
        entry.name
        for entry in entries
        if entry.suffix.lower() in IMAGE_EXTENSIONS and entry.is_file()
    ]
    # Tie-breaks depend on enumeration order, so pin it.
    return sorted(names)


def image_web_path(filename: str, prefix: str = IMAGE_WEB_PREFIX) -> str:
    return f"{prefix.rstrip('/')}/{filename}"


def enrich_records(
    records: Iterable[dict],
    candidates: list[str],
    fallback: list[str],
    used: set[str],
    *,
    prefix: str = IMAGE_WEB_PREFIX,
    languages: Iterable[str] = PREFERRED_TITLE_LANGUAGES,
    label: str = "",
) -> list[dict]:
    languages = tuple(languages)
    items_out: list[dict] = []
    for idx, record in enumerate(records, start=1):
        title = pick_title_string(record.get("title"), languages)
        image = best_image_for_title(title, candidates, used)
        provider = "match"
        if image is None:
            image = next_fallback_image(fallback, used)
            provider = "fallback" if image else "none"

        items_out.append({**record, "image": image_web_path(image, prefix) if image else None})

        preview = safe_console_text(title[:50] or "(untitled)")
        tag = f"{label} " if label else ""
        print(f"  {tag}{idx}. {preview} -> {image or '-'} [{provider}]")
    return items_out


def assign_images(
    groups: Iterable[tuple[str, list[dict]]],
    candidates: list[str],
    fallback: list[str],
    *,
    prefix: str = IMAGE_WEB_PREFIX,
    languages: Iterable[str] = PREFERRED_TITLE_LANGUAGES,
) -> dict[str, list[dict]]:
    """Enrich several record lists in order, sharing one used-image set."""
    fallback = filter_fallback_images(fallback, candidates)
    languages = tuple(languages)
    used: set[str] = set()
    result: dict[str, list[dict]] = {}
    for name, records in groups:
        result[name] = enrich_records(
            records or [],
            candidates,
            fallback,
            used,
            prefix=prefix,
            languages=languages,
            label=name,
        )
    return result
