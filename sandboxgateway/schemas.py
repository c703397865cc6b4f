# -*- coding: utf-8 -*-
"""Location: ./sandboxgateway/schemas.py
Copyright 2026
SPDX-License-Identifier: Apache-2.0

Tool argument schemas.

Each tool exposed by the gateway has a pydantic model describing its
arguments. The models are used for structural validation of incoming calls
and to generate the JSON input schema advertised to MCP clients. Security
checks (sizes, paths, secrets, package names) are not done here; they belong
to the input validator.

Examples:
    >>> ExecuteCodeArgs(code="print(1)").sandbox_id is None
    True
    >>> ListFilesArgs().path
    '.'
    >>> InstallPackagesArgs(packages=["numpy"], language="python").language
    'python'
    >>> sorted(ExecuteCodeArgs.model_json_schema()["required"])
    ['code']
"""

# Standard
from typing import Any, Dict, List, Literal, Optional

# Third-Party
from pydantic import BaseModel, Field

LanguageName = Literal["python", "javascript"]

_SANDBOX_ID_DESCRIPTION = "Optional sandbox ID to use specific sandbox"


class ExecuteCodeArgs(BaseModel):
    """Arguments of ``execute_python`` and ``execute_javascript``."""

    code: str = Field(..., description="Code to execute")
    sandbox_id: Optional[str] = Field(None, description=_SANDBOX_ID_DESCRIPTION)


class CreateFileArgs(BaseModel):
    """Arguments of ``create_file``."""

    path: str = Field(..., description="File path to create")
    content: str = Field(..., description="File content")
    sandbox_id: Optional[str] = Field(None, description=_SANDBOX_ID_DESCRIPTION)


class ReadFileArgs(BaseModel):
    """Arguments of ``read_file``."""

    path: str = Field(..., description="File path to read")
    sandbox_id: Optional[str] = Field(None, description=_SANDBOX_ID_DESCRIPTION)


class ListFilesArgs(BaseModel):
    """Arguments of ``list_files``."""

    path: str = Field(".", description="Directory path to list (defaults to current directory)")
    sandbox_id: Optional[str] = Field(None, description=_SANDBOX_ID_DESCRIPTION)


class InstallPackagesArgs(BaseModel):
    """Arguments of ``install_packages``."""

    packages: List[str] = Field(..., description="List of packages to install")
    language: LanguageName = Field(..., description="Language ecosystem for package installation")
    sandbox_id: Optional[str] = Field(None, description=_SANDBOX_ID_DESCRIPTION)


class SandboxInfoArgs(BaseModel):
    """Arguments of ``get_sandbox_info``."""

    sandbox_id: Optional[str] = Field(None, description="Optional sandbox ID to get info for specific sandbox")


class ToolDefinition(BaseModel):
    """A tool advertised to MCP clients."""

    name: str
    description: str
    input_schema: Dict[str, Any]
