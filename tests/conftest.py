# Ensures project root is importable for tests (so 'image_matcher', 'build_contenthub', etc. can be imported)
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
