import json
import os

import requests
from dotenv import load_dotenv

load_dotenv()

TABLES = ['podcasts', 'scientific_reports', 'generated_articles']


def check_table(base_url, key, table):
    headers = {
        'apikey': key,
        'Authorization': f'Bearer {key}',
    }
    url = f"{base_url.rstrip('/')}/rest/v1/{table}"
    try:
        response = requests.get(url, headers=headers, params={'select': 'id', 'limit': '1'}, timeout=5)
        print(f"[{response.status_code}] {table}: {url}")
        return response.status_code == 200
    except Exception as e:
        print(f"[ERR] {table}: {e}")
        return False


def check_snapshot(json_path):
    if not os.path.exists(json_path):
        print(f"{json_path} does not exist.")
        return False
    try:
        with open(json_path, 'rt', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError:
        print(f"{json_path} is CORRUPTED (JSONDecodeError).")
        return False
    except Exception as e:
        print(f"Error reading {json_path}: {e}")
        return False

    sizes = ', '.join(f"{k}={len(data.get(k) or [])}" for k in ('podcasts', 'reports', 'articles'))
    print(f"{json_path} is valid. {sizes}, generated_at={data.get('generated_at')}")
    return True


def main():
    base_url = os.getenv('SUPABASE_URL', '').strip()
    key = os.getenv('SUPABASE_SERVICE_ROLE_KEY', '').strip()

    print("--- Supabase Table Availability Check ---")
    ok = True
    if not base_url or not key:
        print("[ERR] Missing SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY env vars.")
        ok = False
    else:
        for table in TABLES:
            ok = check_table(base_url, key, table) and ok

    print("\n--- JSON Data File Check ---")
    ok = check_snapshot(os.path.join('assets', 'contenthub.json')) and ok
    return 0 if ok else 1


if __name__ == '__main__':
    raise SystemExit(main())
