import json
from pathlib import Path
from typing import Any, Union

from sandbox_cli.exceptions import CorruptLocalStateError


def to_json_pretty(obj: Any) -> str:
    """Serialize with 2-space indentation, the format of every file the CLI writes."""
    return json.dumps(obj, indent=2, ensure_ascii=False)


def write_json_file(file_path: Union[str, Path], obj: Any) -> None:
    with open(file_path, 'w', encoding='utf-8') as f:
        f.write(to_json_pretty(obj))


def read_json_file(file_path: Union[str, Path]) -> Any:
    """Read a JSON file owned by the CLI

    Args:
        file_path: Path to the JSON file

    Returns:
        The parsed document

    Raises:
        FileNotFoundError: If the file does not exist
        CorruptLocalStateError: If the content is not valid JSON
    """
    with open(file_path, 'rb') as f:
        content = f.read()
    try:
        return json.loads(content.decode('utf-8'))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CorruptLocalStateError(str(file_path), str(e)) from e
