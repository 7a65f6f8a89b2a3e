"""
Tool Dispatcher

Executes one tool call against the project workspace. Names and argument
keys go through the Text Repair Layer, arguments are validated against the
tool's schema, and every failure comes back as a ToolOutcome instead of an
exception.
"""

import time
import logging
import threading
from collections import defaultdict
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Dict, Optional, Tuple

from langchain_core.runnables.config import ContextThreadPoolExecutor

from ...core.config import MAX_FINDINGS_REPORTED, TOOL_TIMEOUT_SECONDS
from ...core.errors import ToolTimeout, UnknownTool, ValidationFailed
from ...core.models import ToolInvocation, ToolOutcome
from ...validation.text_repair import TextRepairer
from ..base import categorize_error, humanize_error, format_time
from .context import ToolContext, current_call_cancelled
from .tools_registry import TOOL_REGISTRY

logger = logging.getLogger(__name__)

PATH_ARGUMENTS = ("path", "importPath", "filename", "directory")


class ToolDispatcher:
    """Runs tool invocations sequentially, one at a time"""

    def __init__(self, context: ToolContext, repairer: Optional[TextRepairer] = None,
                 registry: Dict[str, Dict[str, Any]] = None):
        self.context = context
        self.repairer = repairer or TextRepairer()
        self.registry = registry if registry is not None else TOOL_REGISTRY

    def prepare(self, invocation: ToolInvocation) -> Tuple[Optional[str], Dict[str, Any]]:
        """Repaired tool name (None when unresolved) and repaired argument map"""
        name = self.repairer.repair_tool_name(invocation.name, self.registry.keys())
        args = self.repairer.repair_args(invocation.args or {})
        return name, args

    def describe(self, name: Optional[str], args: Dict[str, Any]) -> str:
        """Progress line for a prepared call, from the tool's action label"""
        if name is None:
            return "❓ Unrecognized tool request"
        label = self.registry[name].get("action_label", f"Running {name}...")
        values = {key: value for key, value in args.items() if isinstance(value, (str, int, float))}
        return label.format_map(defaultdict(lambda: "...", values))

    def dispatch(self, invocation: ToolInvocation,
                 prepared: Optional[Tuple[Optional[str], Dict[str, Any]]] = None) -> ToolOutcome:
        """Run one call; pass the result of prepare() when it was already computed"""
        name, args = prepared if prepared is not None else self.prepare(invocation)
        target_path = next((str(args[key]) for key in PATH_ARGUMENTS if args.get(key)), None)

        if name is None:
            error = UnknownTool(f"'{invocation.name}' is not an available tool")
            logger.warning(f"[Dispatcher] {error}")
            return self._failure(error, target_path)

        info = self.registry[name]
        start_time = time.time()
        try:
            parsed = info["args_model"].model_validate(args)
            payload = self._run(name, info, parsed)
        except Exception as e:
            # Tool failures are reported to the model, never raised into the loop
            logger.info(f"[Dispatcher] {name} failed after {format_time(time.time() - start_time)}: "
                        f"{type(e).__name__}: {e}")
            return self._failure(e, target_path)

        logger.info(f"[Dispatcher] {name} succeeded in {format_time(time.time() - start_time)}")
        return ToolOutcome(success=True, payload=payload, target_path=target_path)

    def _run(self, name: str, info: Dict[str, Any], parsed):
        """
        Run the handler on a context-preserving worker so a timeout can be enforced.

        A worker that outlives its timeout keeps running, but its cancellation
        event is set under the state lock first, so ToolContext.mutation()
        refuses any change it attempts afterwards.
        """
        timeout = info.get("timeout", TOOL_TIMEOUT_SECONDS)
        cancelled = threading.Event()
        executor = ContextThreadPoolExecutor(max_workers=1)
        token = current_call_cancelled.set(cancelled)
        try:
            future = executor.submit(info["handler"], self.context, parsed)
        finally:
            current_call_cancelled.reset(token)

        try:
            try:
                return future.result(timeout=timeout)
            except FutureTimeoutError:
                with self.context.state_lock:
                    cancelled.set()
                if future.done():
                    return future.result()
                logger.warning(f"[Dispatcher] {name} abandoned after {timeout:.0f}s; further changes are refused")
                raise ToolTimeout(f"{name} did not finish within {timeout:.0f}s")
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def _failure(self, error: Exception, target_path: Optional[str]) -> ToolOutcome:
        findings = []
        if isinstance(error, ValidationFailed) and error.report is not None:
            findings = error.report.messages(MAX_FINDINGS_REPORTED)
        return ToolOutcome(
            success=False,
            error_message=humanize_error(error),
            error_category=categorize_error(error),
            findings=findings,
            target_path=target_path,
        )
