import json
import os
from pathlib import Path

JS_VAR_NAME = "CONTENTHUB_DATA"


def write_js_bundle(data, js_path, var_name: str = JS_VAR_NAME):
    js_content = f"window.{var_name} = {json.dumps(data, ensure_ascii=False, indent=2)};"
    Path(js_path).parent.mkdir(parents=True, exist_ok=True)
    with open(js_path, 'w', encoding='utf-8') as f:
        f.write(js_content)


def main():
    json_path = os.path.join("assets", "contenthub.json")
    js_path = os.path.join("assets", "contenthub.js")

    if not os.path.exists(json_path):
        print(f"Error: {json_path} not found.")
        return 1

    try:
        with open(json_path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        write_js_bundle(data, js_path)

        print(f"Successfully converted {json_path} to {js_path}")

    except Exception as e:
        print(f"Error converting: {e}")
        return 1
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
