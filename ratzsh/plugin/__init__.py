"""
rat-zsh Plugin System - repository sync and load ordering.

This module handles:
- Git-based plugin installation and updates
- Slug assignment and atomic publishing under plugins/
- Bounded-concurrency sync of all configured plugins
- Completion directory discovery
- Load order planning
"""

__all__ = []
