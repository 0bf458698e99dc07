import json
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel


class DateTimeEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, BaseModel):
            return obj.model_dump(mode="json", exclude_none=True)
        return super().default(obj)


def save_json_data(data: Any, filename: str, base_path: str = "output") -> Path:
    """Save data to a JSON file in the specified directory and return its path"""
    # Create directory if it doesn't exist
    path = Path(base_path)
    path.mkdir(parents=True, exist_ok=True)

    file_path = path / filename
    with open(file_path, 'w', encoding='utf-8') as f:
        json.dump(data, f, cls=DateTimeEncoder, indent=2, ensure_ascii=False)
    return file_path


def export_json(data: Any, output: str) -> Path:
    """Write data to an explicit output file path."""
    target = Path(output)
    return save_json_data(data, target.name, base_path=str(target.parent))
