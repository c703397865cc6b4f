# -*- coding: utf-8 -*-
"""Location: ./sandboxgateway/services/execution_gateway.py
Copyright 2026
SPDX-License-Identifier: Apache-2.0

Execution Gateway.

Dispatches MCP tool calls to remote sandboxes. Every call goes through the
same pipeline:

1. structural argument validation (pydantic models from ``schemas``)
2. security validation (``InputValidator``)
3. sandbox resolution through the ``SandboxPool``
4. the remote call, bounded by a timeout, under a pool lease
5. sanitization and truncation of everything returned (``OutputSanitizer``)
6. a ``ToolResult`` envelope

No exception escapes ``execute_tool``; every failure becomes an error
envelope.
"""

# Standard
import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type, TypeVar

# Third-Party
import orjson
from pydantic import BaseModel, ValidationError

# First-Party
from sandboxgateway.config import settings
from sandboxgateway.models import Language, SandboxHandle, ToolResult, ValidationVerdict
from sandboxgateway.providers.base import ProviderError, RemoteExecution
from sandboxgateway.schemas import CreateFileArgs, ExecuteCodeArgs, InstallPackagesArgs, ListFilesArgs, ReadFileArgs, SandboxInfoArgs, ToolDefinition
from sandboxgateway.security.sanitizer import OutputSanitizer
from sandboxgateway.security.validators import InputValidator
from sandboxgateway.services.sandbox_pool import SandboxPool

logger = logging.getLogger(__name__)

ArgsModel = TypeVar("ArgsModel", bound=BaseModel)
T = TypeVar("T")

NO_OUTPUT = "(no output)"

_PYTHON_INSTALL_SCRIPT = """import subprocess
import sys

packages = {packages}
for package in packages:
    subprocess.check_call([sys.executable, "-m", "pip", "install", package])
print(f"Successfully installed: {{', '.join(packages)}}")
"""

_JAVASCRIPT_INSTALL_SCRIPT = """const {{ execSync }} = require("child_process");
const packages = {packages};
try {{
  const result = execSync("npm install " + packages.join(" "), {{
    encoding: "utf8",
    cwd: process.cwd(),
    timeout: {timeout_ms}
  }});
  console.log(result);
  console.log("Successfully installed:", packages.join(", "));
}} catch (error) {{
  console.error("Install failed:", error.message);
  throw error;
}}
"""

INSTALL_SCRIPTS: Dict[Language, str] = {
    Language.PYTHON: _PYTHON_INSTALL_SCRIPT,
    Language.JAVASCRIPT: _JAVASCRIPT_INSTALL_SCRIPT,
}


class ToolInputError(ValueError):
    """Tool arguments were rejected before any remote call."""


def build_install_script(language: Language, packages: List[str], timeout_seconds: float) -> str:
    """Render the installer script for a package ecosystem.

    Package names are embedded as a JSON array literal, which both Python
    and JavaScript parse as a list of strings.

    Args:
        language: Package ecosystem
        packages: Validated package names
        timeout_seconds: Time the installer itself may take

    Returns:
        str: Script to run inside the sandbox

    Examples:
        >>> 'packages = ["numpy","pandas"]' in build_install_script(Language.PYTHON, ["numpy", "pandas"], 60)
        True
        >>> "timeout: 60000" in build_install_script(Language.JAVASCRIPT, ["lodash"], 60)
        True
    """
    literal = orjson.dumps(list(packages)).decode()
    return INSTALL_SCRIPTS[Language(language)].format(packages=literal, timeout_ms=int(timeout_seconds * 1000))


def combine_output(execution: RemoteExecution) -> str:
    """Merge logs, result texts and the structured error of a run.

    Args:
        execution: Remote run result

    Returns:
        str: One text block, empty when the run produced nothing

    Examples:
        >>> from sandboxgateway.providers.base import RemoteExecutionError
        >>> combine_output(RemoteExecution(stdout=["hello\\n"], results=["42"]))
        'hello\\n42\\n'
        >>> combine_output(RemoteExecution(error=RemoteExecutionError("ZeroDivisionError", "division by zero")))
        'Error: ZeroDivisionError: division by zero\\n'
        >>> combine_output(RemoteExecution())
        ''
    """
    output = ""
    for chunk in (execution.stdout, execution.stderr):
        text = "".join(chunk)
        if text:
            output += text if text.endswith("\n") else text + "\n"

    for result in execution.results:
        if result:
            output += result + "\n"

    if execution.error is not None:
        output += f"Error: {execution.error.name}: {execution.error.value}\n"
        if execution.error.traceback:
            output += execution.error.traceback + "\n"
    return output


def _elapsed_ms(started: float) -> int:
    return max(0, int((time.monotonic() - started) * 1000))


def _seconds(value: float) -> str:
    return f"{value:g}"


def _describe_error(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


class ExecutionGateway:
    """Runs MCP tool calls against pooled remote sandboxes.

    Attributes:
        pool: Sandbox registry
        validator: Input validation gate
        sanitizer: Output sanitizer
        execution_timeout: Seconds allowed for code runs and file operations
        install_timeout: Seconds allowed for package installation runs
        default_file_language: Language of sandboxes created for file tools
    """

    def __init__(
        self,
        pool: SandboxPool,
        validator: Optional[InputValidator] = None,
        sanitizer: Optional[OutputSanitizer] = None,
        execution_timeout: Optional[float] = None,
        install_timeout: Optional[float] = None,
        default_file_language: Optional[Language] = None,
    ):
        """Initialize the gateway.

        Args:
            pool: Sandbox registry
            validator: Input validator (defaults to one built from settings)
            sanitizer: Output sanitizer (defaults to one built from settings)
            execution_timeout: Code run bound (defaults to settings)
            install_timeout: Package installation bound (defaults to settings)
            default_file_language: Language for file tools (defaults to settings)
        """
        self.pool = pool
        self.validator = validator or InputValidator()
        self.sanitizer = sanitizer or OutputSanitizer()
        self.execution_timeout = execution_timeout if execution_timeout is not None else settings.execution_timeout_seconds
        self.install_timeout = install_timeout if install_timeout is not None else settings.install_timeout_seconds
        self.default_file_language = Language(default_file_language if default_file_language is not None else settings.default_file_language)

        self._handlers: Dict[str, Callable[[Dict[str, Any]], Awaitable[ToolResult]]] = {
            "execute_python": self._execute_python,
            "execute_javascript": self._execute_javascript,
            "create_file": self._create_file,
            "read_file": self._read_file,
            "list_files": self._list_files,
            "install_packages": self._install_packages,
            "get_sandbox_info": self._get_sandbox_info,
        }

    # ---------------------------------------------------------------------------
    # Tool catalogue
    # ---------------------------------------------------------------------------

    def tool_definitions(self) -> List[ToolDefinition]:
        """Describe every tool with its JSON input schema.

        Returns:
            List[ToolDefinition]: The seven gateway tools
        """
        python_schema = ExecuteCodeArgs.model_json_schema()
        python_schema["properties"]["code"]["description"] = "Python code to execute"
        javascript_schema = ExecuteCodeArgs.model_json_schema()
        javascript_schema["properties"]["code"]["description"] = "JavaScript code to execute"

        return [
            ToolDefinition(name="execute_python", description="Execute Python code in an E2B sandbox environment", input_schema=python_schema),
            ToolDefinition(name="execute_javascript", description="Execute JavaScript/Node.js code in an E2B sandbox environment", input_schema=javascript_schema),
            ToolDefinition(name="create_file", description="Create a file in the sandbox environment", input_schema=CreateFileArgs.model_json_schema()),
            ToolDefinition(name="read_file", description="Read a file from the sandbox environment", input_schema=ReadFileArgs.model_json_schema()),
            ToolDefinition(name="list_files", description="List files in a directory in the sandbox environment", input_schema=ListFilesArgs.model_json_schema()),
            ToolDefinition(
                name="install_packages",
                description="Install packages in the sandbox environment (Python pip or Node.js npm)",
                input_schema=InstallPackagesArgs.model_json_schema(),
            ),
            ToolDefinition(name="get_sandbox_info", description="Get information about sandbox status and resource usage", input_schema=SandboxInfoArgs.model_json_schema()),
        ]

    # ---------------------------------------------------------------------------
    # Dispatch
    # ---------------------------------------------------------------------------

    async def execute_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> ToolResult:
        """Run one tool call.

        Args:
            name: Tool name
            arguments: Raw tool arguments

        Returns:
            ToolResult: Success or failure envelope; never raises
        """
        handler = self._handlers.get(name)
        try:
            if handler is None:
                raise ToolInputError(f"Unknown tool: {name}")
            return await handler(arguments or {})
        except Exception as exc:
            logger.error(f"Tool execution failed for {name}: {_describe_error(exc)}")
            return ToolResult.failure(self.sanitizer.process(f"Error: {_describe_error(exc)}"))

    @staticmethod
    def _parse(model: Type[ArgsModel], arguments: Dict[str, Any], tool: str) -> ArgsModel:
        try:
            return model.model_validate(arguments)
        except ValidationError as exc:
            problems = "; ".join(f"{'.'.join(str(part) for part in error['loc']) or 'arguments'}: {error['msg']}" for error in exc.errors())
            raise ToolInputError(f"Invalid arguments for {tool}: {problems}") from exc

    @staticmethod
    def _check(verdict: ValidationVerdict, label: str) -> None:
        if not verdict:
            raise ToolInputError(f"{label}: {verdict.reason}")

    # ---------------------------------------------------------------------------
    # Sandbox resolution and remote calls
    # ---------------------------------------------------------------------------

    async def _resolve_for_language(self, language: Language, sandbox_id: Optional[str]) -> SandboxHandle:
        if sandbox_id:
            handle = await self.pool.require(sandbox_id)
            if handle.language == language:
                return handle
            logger.info(f"Sandbox {sandbox_id} runs {handle.language.value}; using a {language.value} sandbox instead")
        return await self.pool.get_or_create(language)

    async def _resolve_any(self, sandbox_id: Optional[str]) -> SandboxHandle:
        if sandbox_id:
            return await self.pool.require(sandbox_id)
        return await self.pool.get_or_create(self.default_file_language)

    async def _bounded(self, handle: SandboxHandle, call: Callable[[], Awaitable[T]], action: str, timeout: Optional[float] = None) -> T:
        timeout = timeout if timeout is not None else self.execution_timeout
        async with self.pool.lease(handle):
            try:
                return await asyncio.wait_for(call(), timeout=timeout)
            except asyncio.TimeoutError as exc:
                raise ProviderError(f"{action} timed out after {_seconds(timeout)}s") from exc

    def _remote_failure(self, action: str, handle: SandboxHandle, started: float, exc: BaseException) -> ToolResult:
        elapsed = _elapsed_ms(started)
        message = self.sanitizer.process(_describe_error(exc))
        return ToolResult.failure(
            f"{action} failed after {elapsed}ms\nSandbox ID: {handle.sandbox_id}\n\nError: {message}",
            sandbox_id=handle.sandbox_id,
            duration_ms=elapsed,
        )

    async def _run_code(self, handle: SandboxHandle, code: str, language: Language, timeout: float, action: str) -> RemoteExecution:
        return await self._bounded(handle, lambda: handle.remote.run_code(code, language, timeout), action, timeout)

    # ---------------------------------------------------------------------------
    # Tools
    # ---------------------------------------------------------------------------

    async def _execute_python(self, arguments: Dict[str, Any]) -> ToolResult:
        return await self._execute_code(Language.PYTHON, self._parse(ExecuteCodeArgs, arguments, "execute_python"))

    async def _execute_javascript(self, arguments: Dict[str, Any]) -> ToolResult:
        return await self._execute_code(Language.JAVASCRIPT, self._parse(ExecuteCodeArgs, arguments, "execute_javascript"))

    async def _execute_code(self, language: Language, args: ExecuteCodeArgs) -> ToolResult:
        self._check(self.validator.validate_code(args.code, language), "Security validation failed")

        handle = await self._resolve_for_language(language, args.sandbox_id)
        logger.info(f"Executing {language.value} code in sandbox {handle.sandbox_id}")

        started = time.monotonic()
        try:
            execution = await self._run_code(handle, args.code, language, self.execution_timeout, "Execution")
        except Exception as exc:
            logger.error(f"{language.value} execution failed in sandbox {handle.sandbox_id}: {_describe_error(exc)}")
            return self._remote_failure("Execution", handle, started, exc)

        elapsed = _elapsed_ms(started)
        output = self.sanitizer.process(combine_output(execution))
        return ToolResult(
            text=f"Execution completed in {elapsed}ms\nSandbox ID: {handle.sandbox_id}\n\nOutput:\n{output or NO_OUTPUT}",
            is_error=execution.error is not None,
            sandbox_id=handle.sandbox_id,
            duration_ms=elapsed,
        )

    async def _create_file(self, arguments: Dict[str, Any]) -> ToolResult:
        args = self._parse(CreateFileArgs, arguments, "create_file")
        self._check(self.validator.validate_file_path(args.path), "Path validation failed")
        self._check(self.validator.validate_file_content(args.content), "Content validation failed")

        handle = await self._resolve_any(args.sandbox_id)
        logger.info(f"Creating file {args.path} in sandbox {handle.sandbox_id}")
        await self._bounded(handle, lambda: handle.remote.write_file(args.path, args.content), f"Writing {args.path}")

        size = len(args.content.encode("utf-8"))
        return ToolResult(
            text=f"File created successfully: {args.path}\nSandbox ID: {handle.sandbox_id}\nContent length: {size} bytes",
            sandbox_id=handle.sandbox_id,
        )

    async def _read_file(self, arguments: Dict[str, Any]) -> ToolResult:
        args = self._parse(ReadFileArgs, arguments, "read_file")
        self._check(self.validator.validate_file_path(args.path), "Path validation failed")

        handle = await self._resolve_any(args.sandbox_id)
        logger.info(f"Reading file {args.path} from sandbox {handle.sandbox_id}")
        content = await self._bounded(handle, lambda: handle.remote.read_file(args.path), f"Reading {args.path}")

        size = len(content.encode("utf-8"))
        return ToolResult(
            text=f"File: {args.path}\nSandbox ID: {handle.sandbox_id}\nContent length: {size} bytes\n\n{self.sanitizer.process(content)}",
            sandbox_id=handle.sandbox_id,
        )

    async def _list_files(self, arguments: Dict[str, Any]) -> ToolResult:
        args = self._parse(ListFilesArgs, arguments, "list_files")
        self._check(self.validator.validate_file_path(args.path), "Path validation failed")

        handle = await self._resolve_any(args.sandbox_id)
        logger.info(f"Listing files in {args.path} from sandbox {handle.sandbox_id}")
        entries = await self._bounded(handle, lambda: handle.remote.list_directory(args.path), f"Listing {args.path}")

        lines = []
        for entry in entries:
            line = f"[{'dir' if entry.is_dir else 'file'}] {entry.name}"
            if entry.size:
                line += f" ({entry.size} bytes)"
            lines.append(line)

        listing = self.sanitizer.process("\n".join(lines))
        return ToolResult(
            text=f"Directory: {args.path}\nSandbox ID: {handle.sandbox_id}\nFiles ({len(entries)}):\n\n{listing}",
            sandbox_id=handle.sandbox_id,
        )

    async def _install_packages(self, arguments: Dict[str, Any]) -> ToolResult:
        args = self._parse(InstallPackagesArgs, arguments, "install_packages")
        language = Language(args.language)
        self._check(self.validator.validate_packages(args.packages, language), "Package validation failed")

        handle = await self._resolve_for_language(language, args.sandbox_id)
        logger.info(f"Installing {language.value} packages {', '.join(args.packages)} in sandbox {handle.sandbox_id}")

        script = build_install_script(language, args.packages, self.install_timeout)
        started = time.monotonic()
        try:
            execution = await self._run_code(handle, script, language, self.install_timeout, "Package installation")
        except Exception as exc:
            logger.error(f"Package installation failed in sandbox {handle.sandbox_id}: {_describe_error(exc)}")
            return self._remote_failure("Package installation", handle, started, exc)
        elapsed = _elapsed_ms(started)

        failed = execution.error is not None
        output = self.sanitizer.process(combine_output(execution))
        return ToolResult(
            text=(
                f"Package installation {'failed' if failed else 'completed'}\n"
                f"Sandbox ID: {handle.sandbox_id}\n"
                f"Packages: {', '.join(args.packages)}\n"
                f"Language: {language.value}\n\n"
                f"Output:\n{output or NO_OUTPUT}"
            ),
            is_error=failed,
            sandbox_id=handle.sandbox_id,
            duration_ms=elapsed,
        )

    async def _get_sandbox_info(self, arguments: Dict[str, Any]) -> ToolResult:
        args = self._parse(SandboxInfoArgs, arguments, "get_sandbox_info")

        if args.sandbox_id:
            handle = await self.pool.require(args.sandbox_id)
            info = handle.summary().to_dict()
            entries = await self._bounded(handle, lambda: handle.remote.list_directory("."), "Listing sandbox files")
            info["filesCount"] = len(entries)
            body = orjson.dumps(info, option=orjson.OPT_INDENT_2).decode()
            return ToolResult(text=f"Sandbox Information:\n{body}", sandbox_id=handle.sandbox_id)

        summaries = await self.pool.list_sandboxes()
        blocks = [
            f"ID: {s.sandbox_id}\nLanguage: {s.language.value}\nCreated: {s.created_at.isoformat()}\nLast Used: {s.last_used.isoformat()}\nStatus: {s.state.value}\n"
            for s in summaries
        ]
        return ToolResult(text=f"Active Sandboxes ({len(summaries)}):\n\n" + "\n".join(blocks))
