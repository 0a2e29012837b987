#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Shared helpers for dependency checks and outbound HTTP."""
