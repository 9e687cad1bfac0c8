import json
import os
from collections import Counter
from pathlib import Path

from image_matcher import pick_title_string, safe_console_text

SECTIONS = ('reports', 'articles')


def iter_images(snapshot):
    for section in SECTIONS:
        for item in snapshot.get(section) or []:
            image = item.get('image')
            if image:
                yield section, item, image


def find_image_issues(snapshot, root):
    issues = []
    counts = Counter(image for _, _, image in iter_images(snapshot))
    for image, count in sorted(counts.items()):
        if count > 1:
            issues.append(f"duplicate image ({count}x): {image}")

    root = Path(root)
    for section, item, image in iter_images(snapshot):
        if not (root / image).is_file():
            issues.append(f"missing file in {section} #{item.get('id')}: {image}")
    return issues


def main():
    json_path = os.path.join('assets', 'contenthub.json')
    if not os.path.exists(json_path):
        print(f"[ERR] {json_path} not found.")
        return 1

    try:
        with open(json_path, 'r', encoding='utf-8') as f:
            snapshot = json.load(f)
    except Exception as e:
        print(f"[ERR] Validation failed: {e}")
        return 1

    for section in SECTIONS:
        items = snapshot.get(section) or []
        print(f"\n[{section}] {len(items)} items")
        for i, item in enumerate(items, 1):
            title = safe_console_text(pick_title_string(item.get('title')))
            print(f"{i}. {title[:60]} -> {item.get('image') or '-'}")

    issues = find_image_issues(snapshot, '.')
    if issues:
        print("\n[WARN] Image issues found:")
        for issue in issues:
            print(f"  - {issue}")
        return 1

    print("\n[PASS] No duplicate or missing images.")
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
