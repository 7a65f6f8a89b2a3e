"""External-call tools: npm package install and asset download"""

import os
import re
import logging
import subprocess
from typing import Any, Dict
from urllib.parse import urlparse

import requests

from ...core.config import (
    ASSETS_DIR, PACKAGE_INSTALL_COMMAND, INSTALL_TIMEOUT_SECONDS, DOWNLOAD_TIMEOUT_SECONDS,
)
from ...core.errors import ToolTimeout
from ...memory.code_analysis import asset_category
from ...schemas.tool_args import InstallPackageArgs, DownloadAssetArgs
from .context import ToolContext

logger = logging.getLogger(__name__)

PACKAGE_NAME_PATTERN = re.compile(r"^(@[\w.-]+/)?[\w.-]+(@[\w.^~<>=*|-]+)?$")
MAX_OUTPUT_TAIL = 500


def install_package(ctx: ToolContext, args: InstallPackageArgs) -> Dict[str, Any]:
    invalid = [name for name in args.packages if not PACKAGE_NAME_PATTERN.match(name)]
    if invalid:
        raise ValueError(f"Invalid package names: {', '.join(invalid)}")

    cwd = ctx.engine_root or str(ctx.workspace.root)
    command = list(PACKAGE_INSTALL_COMMAND) + list(args.packages)
    ctx.reporter.log("info", f"📦 Installing {', '.join(args.packages)}")
    try:
        completed = subprocess.run(command, cwd=cwd, capture_output=True, text=True,
                                   timeout=INSTALL_TIMEOUT_SECONDS)
    except subprocess.TimeoutExpired:
        raise ToolTimeout(f"npm install did not finish within {INSTALL_TIMEOUT_SECONDS:.0f}s")

    if completed.returncode != 0:
        tail = (completed.stderr or completed.stdout or "")[-MAX_OUTPUT_TAIL:]
        raise RuntimeError(f"npm install exited with {completed.returncode}: {tail}")

    with ctx.mutation():
        ctx.brain.record_decision(f"Installed {', '.join(args.packages)}", "package dependency")
    return {"installed": args.packages, "output": (completed.stdout or "")[-MAX_OUTPUT_TAIL:]}


def download_asset(ctx: ToolContext, args: DownloadAssetArgs) -> Dict[str, Any]:
    """Fetch a remote asset into assets/<category>/"""
    scheme = urlparse(args.url).scheme
    if scheme not in ("http", "https"):
        raise ValueError(f"Unsupported URL scheme '{scheme}'")

    filename = os.path.basename(args.filename.strip())
    if not filename or asset_category(filename) != args.category:
        raise ValueError(f"'{args.filename}' is not a valid {args.category} file name")

    try:
        response = requests.get(args.url, timeout=DOWNLOAD_TIMEOUT_SECONDS)
        response.raise_for_status()
    except requests.Timeout:
        raise ToolTimeout(f"Download of {args.url} timed out after {DOWNLOAD_TIMEOUT_SECONDS:.0f}s")

    path = f"{ASSETS_DIR}/{args.category}/{filename}"
    with ctx.mutation():
        ctx.workspace.write_bytes(path, response.content)
        ctx.brain.add_asset(f"{args.category}/{filename}")
    ctx.reporter.log("info", f"⬇️ Downloaded {filename} ({len(response.content)} bytes)")
    return {
        "file": filename,
        "bytes": len(response.content),
        "reference": f"staticFile(`assets/{ctx.project_id}/{args.category}/{filename}`)",
    }
