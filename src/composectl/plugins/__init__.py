"""Extension layer — plugin system via pluggy.

Discovery: entry_points (pip-installed) in the ``composectl.plugins`` group,
plus the built-in plugins under ``composectl.plugins.builtins``.
"""

from composectl.plugins.manager import PluginManager

__all__ = ["PluginManager"]
