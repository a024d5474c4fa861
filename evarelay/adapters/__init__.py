"""Messaging adapters.

Adapters connect the worker to messaging platforms.
Each adapter implements the BaseAdapter interface.
"""

from evarelay.adapters.base import BaseAdapter

__all__ = ["BaseAdapter"]
