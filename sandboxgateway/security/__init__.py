# -*- coding: utf-8 -*-
"""Input validation and output sanitization for sandbox traffic."""

# First-Party
from sandboxgateway.security.sanitizer import OutputSanitizer
from sandboxgateway.security.validators import InputValidator

__all__ = ["InputValidator", "OutputSanitizer"]
