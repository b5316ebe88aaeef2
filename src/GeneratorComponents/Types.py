"""Core generator type aliases.

This module intentionally contains **no UI framework imports**.
The generator exposes node handles and progress metadata to a UI, but the core
should not depend on Textual (or any other UI layer) to run headlessly.
"""

from __future__ import annotations

from typing import NewType

# Opaque arena handle for a block. Slots and links store handles, never nodes.
# In the Textual UI this maps cleanly to tree node data.
NodeHandle = NewType("NodeHandle", int)
