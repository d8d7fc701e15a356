"""Plugins shipped with composectl."""
