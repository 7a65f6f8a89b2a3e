"""Director tool catalog and dispatcher"""

from .context import ToolContext
from .dispatcher import ToolDispatcher
from .tools_registry import TOOL_REGISTRY, TOOL_CATALOG_VERSION, get_function_schemas

__all__ = ["ToolContext", "ToolDispatcher", "TOOL_REGISTRY", "TOOL_CATALOG_VERSION", "get_function_schemas"]
