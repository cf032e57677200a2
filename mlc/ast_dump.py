from __future__ import annotations

from dataclasses import fields, is_dataclass
from enum import Enum
import json
from typing import Any



def ast_to_debug_data(node: Any) -> Any:
    if node is None:
        return None

    if isinstance(node, Enum):
        return node.value

    if isinstance(node, (str, int, bool)):
        return node

    if isinstance(node, (list, tuple)):
        return [ast_to_debug_data(item) for item in node]

    if is_dataclass(node):
        result: dict[str, Any] = {"node": type(node).__name__}
        for field in fields(node):
            result[field.name] = ast_to_debug_data(getattr(node, field.name))
        return result

    raise TypeError(f"Unsupported AST debug serialization value: {type(node).__name__}")



def ast_to_debug_json(node: Any) -> str:
    data = ast_to_debug_data(node)
    return json.dumps(data, indent=2, sort_keys=True)
