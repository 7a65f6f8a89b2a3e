"""
Function Schema Converter

Converts pydantic argument models to Gemini function declarations so the
schema the model sees and the schema the dispatcher validates are the same.
"""

from typing import Dict, List, Any, Union, Literal, Type, get_origin, get_args

from pydantic import BaseModel


def python_type_to_gemini_schema(python_type) -> Dict[str, Any]:
    """
    Convert a Python type hint to a Gemini schema dict.

    Handles:
    - Basic types: str, int, float, bool
    - Optional[T] -> schema of T with nullable
    - List[T] -> ARRAY with items
    - Literal[...] -> STRING enum
    - nested pydantic models -> OBJECT
    """
    origin = get_origin(python_type)

    # Optional[T] is Union[T, None]
    if origin is Union:
        args = [arg for arg in get_args(python_type) if arg is not type(None)]
        if len(args) == 1:
            schema = python_type_to_gemini_schema(args[0])
            schema["nullable"] = True
            return schema
        return {"type": "STRING"}

    if origin is Literal:
        return {"type": "STRING", "enum": [str(value) for value in get_args(python_type)]}

    if origin in (list, List):
        args = get_args(python_type)
        item_schema = python_type_to_gemini_schema(args[0]) if args else {"type": "STRING"}
        return {"type": "ARRAY", "items": item_schema}

    if isinstance(python_type, type) and issubclass(python_type, BaseModel):
        return model_to_object_schema(python_type)

    type_map = {
        str: "STRING",
        int: "INTEGER",
        float: "NUMBER",
        bool: "BOOLEAN",
    }
    # Fallback - free text
    return {"type": type_map.get(python_type, "STRING")}


def model_to_object_schema(model: Type[BaseModel]) -> Dict[str, Any]:
    """OBJECT schema keyed by the model's wire aliases"""
    properties = {}
    required = []
    for field_name, field_info in model.model_fields.items():
        key = field_info.alias or field_name
        schema = python_type_to_gemini_schema(field_info.annotation)
        if field_info.description:
            schema["description"] = field_info.description
        properties[key] = schema
        if field_info.is_required():
            required.append(key)

    schema = {"type": "OBJECT", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def model_to_function_declaration(name: str, description: str, model: Type[BaseModel]) -> Dict[str, Any]:
    """
    Build a Gemini function declaration dict.

    Returns:
        {"name": ..., "description": ..., "parameters": {...}}
        Tools without arguments omit "parameters".
    """
    declaration = {"name": name, "description": description}
    if model.model_fields:
        declaration["parameters"] = model_to_object_schema(model)
    return declaration


def model_argument_keys(model: Type[BaseModel]) -> List[str]:
    """All wire keys of a model, nested models included"""
    keys = []
    for field_name, field_info in model.model_fields.items():
        keys.append(field_info.alias or field_name)
        annotation = field_info.annotation
        candidates = [annotation] + list(get_args(annotation))
        for candidate in candidates:
            for inner in [candidate] + list(get_args(candidate)):
                if isinstance(inner, type) and issubclass(inner, BaseModel):
                    keys.extend(model_argument_keys(inner))
    return keys
