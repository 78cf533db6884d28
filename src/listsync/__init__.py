"""listsync — optimistic drag-and-drop reconciliation for ordered item lists."""

__version__ = "0.3.0"
