"""Create a demo class for a teacher.

Usage: python scripts/seed_db.py <teacher_id> [class name]
"""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.presence_check.presence_check.container import build_container


def main() -> None:
    if len(sys.argv) < 2:
        raise SystemExit(__doc__)
    teacher_id = sys.argv[1]
    name = " ".join(sys.argv[2:]) or "Lớp demo"

    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=dict(settings.DB_CONFIG), settings=settings)
    classroom = container.class_service.create_class(teacher_id=teacher_id, name=name)

    print(f"OK: class_id={classroom.class_id} name={classroom.name!r} teacher={teacher_id}")


if __name__ == "__main__":
    main()
