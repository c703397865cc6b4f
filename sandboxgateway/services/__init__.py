# -*- coding: utf-8 -*-
"""Location: ./sandboxgateway/services/__init__.py
Copyright 2026
SPDX-License-Identifier: Apache-2.0

Services Package.
Exposes the gateway services:
- Sandbox pooling
- Tool execution
- Logging and security event logging
"""
