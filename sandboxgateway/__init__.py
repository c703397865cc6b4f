# -*- coding: utf-8 -*-
"""Location: ./sandboxgateway/__init__.py
Copyright 2026
SPDX-License-Identifier: Apache-2.0

Sandboxed execution gateway: an MCP server brokering access to remote E2B
code-execution sandboxes.
"""

__version__ = "1.0.0"
