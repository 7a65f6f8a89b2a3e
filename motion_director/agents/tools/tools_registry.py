"""
Central registry for director tools

Single source of truth for:
- Tool handlers and argument schemas
- Function declarations sent to the model
- Per-tool execution timeouts
"""

import logging
from typing import Dict, Any, List, Optional

from ...core.config import TOOL_TIMEOUT_SECONDS, INSTALL_TIMEOUT_SECONDS, DOWNLOAD_TIMEOUT_SECONDS
from ...core.function_schema import model_to_function_declaration, model_argument_keys
from ...schemas import tool_args
from . import tools_files, tools_composition, tools_memory, tools_build, tools_plan

logger = logging.getLogger(__name__)

TOOL_CATALOG_VERSION = "2"


# ==============================================================================
# DIRECTOR TOOL REGISTRY
# ==============================================================================

TOOL_REGISTRY = {
    "write_file": {
        "handler": tools_files.write_file,
        "args_model": tool_args.WriteFileArgs,
        "category": "files",
        "action_label": "🛠️ Designing: {path}",
        "description": "Create or overwrite a file. Code is repaired and validated after writing; "
                       "validation problems are reported as a failure and must be fixed.",
    },
    "read_file": {
        "handler": tools_files.read_file,
        "args_model": tool_args.ReadFileArgs,
        "category": "files",
        "action_label": "📖 Reading source: {path}",
        "description": "Read a file with line numbers (use them for atomic_edit).",
    },
    "list_files": {
        "handler": tools_files.list_files,
        "args_model": tool_args.ListFilesArgs,
        "category": "files",
        "action_label": "📂 Exploring workspace...",
        "description": "List files in a project directory.",
    },
    "delete_file": {
        "handler": tools_files.delete_file,
        "args_model": tool_args.DeleteFileArgs,
        "category": "files",
        "action_label": "🗑️ Removing: {path}",
        "description": "Delete a file from the project.",
    },
    "atomic_edit": {
        "handler": tools_files.atomic_edit,
        "args_model": tool_args.AtomicEditArgs,
        "category": "files",
        "action_label": "✂️ Refining: {path}",
        "description": "Replace one or more line ranges in a file in a single step.",
    },
    "get_my_assets": {
        "handler": tools_files.get_my_assets,
        "args_model": tool_args.GetMyAssetsArgs,
        "category": "files",
        "action_label": "📦 Discovering uploaded assets...",
        "description": "List uploaded images, audio and video with their staticFile() references.",
    },
    "validate_syntax": {
        "handler": tools_composition.validate_syntax,
        "args_model": tool_args.ValidateSyntaxArgs,
        "category": "composition",
        "action_label": "🔍 Verifying code integrity...",
        "description": "Check one file or the whole project for structural and syntax errors.",
    },
    "register_composition": {
        "handler": tools_composition.register_composition,
        "args_model": tool_args.RegisterCompositionArgs,
        "category": "composition",
        "action_label": "🎬 Linking component: {componentName}",
        "publish_gate": True,
        "description": "Register the finished entry composition for preview. Rejected if the file "
                       "fails validation. The preview activates when you end the turn.",
    },
    "deploy_project": {
        "handler": tools_composition.deploy_project,
        "args_model": tool_args.DeployProjectArgs,
        "category": "composition",
        "action_label": "🚀 Deploying project...",
        "publish_gate": True,
        "description": "Validate every source file and publish the project. Rejected if any file fails.",
    },
    "update_log": {
        "handler": tools_memory.update_log,
        "args_model": tool_args.UpdateLogArgs,
        "category": "memory",
        "action_label": "🧠 Updating project memory...",
        "description": "Update composition metadata (duration, fps, entry) or brand facts.",
    },
    "record_decision": {
        "handler": tools_memory.record_decision,
        "args_model": tool_args.RecordDecisionArgs,
        "category": "memory",
        "action_label": "⚖️ Logging design choice...",
        "description": "Remember a design decision and why it was made.",
    },
    "install_package": {
        "handler": tools_build.install_package,
        "args_model": tool_args.InstallPackageArgs,
        "category": "build",
        "action_label": "📦 Installing packages...",
        "timeout": INSTALL_TIMEOUT_SECONDS + 5,
        "description": "Install npm packages needed by the composition.",
    },
    "download_asset": {
        "handler": tools_build.download_asset,
        "args_model": tool_args.DownloadAssetArgs,
        "category": "build",
        "action_label": "⬇️ Fetching asset: {filename}",
        "timeout": DOWNLOAD_TIMEOUT_SECONDS + 5,
        "description": "Download an image, audio or video file into the project assets.",
    },
    "create_project_plan": {
        "handler": tools_plan.create_project_plan,
        "args_model": tool_args.CreateProjectPlanArgs,
        "category": "plan",
        "action_label": "🗺️ Planning: {title}",
        "description": "Write PLAN.md with the ordered scenes and their durations.",
    },
    "read_project_plan": {
        "handler": tools_plan.read_project_plan,
        "args_model": tool_args.ReadProjectPlanArgs,
        "category": "plan",
        "action_label": "🗺️ Reading plan...",
        "description": "Read PLAN.md.",
    },
    "update_project_plan": {
        "handler": tools_plan.update_project_plan,
        "args_model": tool_args.UpdateProjectPlanArgs,
        "category": "plan",
        "action_label": "🗺️ Plan update: {section}",
        "description": "Update a scene status in PLAN.md and append a progress note.",
    },
}


# ==============================================================================
# HELPER FUNCTIONS
# ==============================================================================

def get_tool_info(tool_name: str) -> Optional[Dict[str, Any]]:
    """Get complete info for a tool"""
    return TOOL_REGISTRY.get(tool_name)


def get_available_tools() -> List[str]:
    """Get list of available tool names"""
    return list(TOOL_REGISTRY.keys())


def get_tool_timeout(tool_name: str) -> float:
    return TOOL_REGISTRY[tool_name].get("timeout", TOOL_TIMEOUT_SECONDS)


def get_tools_description() -> str:
    """Get formatted description of all tools for prompts"""
    return "\n".join(f"- {name}: {info['description']}" for name, info in TOOL_REGISTRY.items())


def get_function_schemas(tool_names: Optional[List[str]] = None) -> List[Dict]:
    """Get function declarations for specified tools (or all if none specified)"""
    if tool_names is None:
        tool_names = get_available_tools()

    schemas = []
    for name in tool_names:
        info = get_tool_info(name)
        if info:
            schemas.append(model_to_function_declaration(name, info["description"], info["args_model"]))
        else:
            logger.warning(f"[Registry] Unknown tool '{name}' skipped")
    return schemas


def get_argument_keys() -> List[str]:
    """Every argument key the catalog declares"""
    keys = set()
    for info in TOOL_REGISTRY.values():
        keys.update(model_argument_keys(info["args_model"]))
    return sorted(keys)
