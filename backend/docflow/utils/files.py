# backend/docflow/utils/files.py
import json
import secrets
import time
from pathlib import Path
from typing import List, Optional

FILE_TYPES = {
    "pdf": "pdf",
    "doc": "document",
    "docx": "document",
    "xls": "spreadsheet",
    "xlsx": "spreadsheet",
    "zip": "archive",
}


def get_file_type(file_name: str) -> str:
    """Map a file name to the coarse file-type tag stored on documents"""
    extension = Path(file_name).suffix.lower().lstrip(".")
    return FILE_TYPES.get(extension, "other")


def build_storage_path(user_id: str, file_name: str) -> str:
    """Unique per-user object path for an uploaded file"""
    extension = Path(file_name).suffix
    unique_name = f"{int(time.time() * 1000)}_{secrets.token_hex(4)}{extension}"
    return f"{user_id}/{unique_name}"


def parse_tags(raw: Optional[str]) -> List[str]:
    """Tags arrive as a JSON list or as a comma-separated string"""
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except ValueError:
        parsed = None
    if isinstance(parsed, list):
        return [str(tag).strip() for tag in parsed if str(tag).strip()]
    return [tag.strip() for tag in raw.split(",") if tag.strip()]
