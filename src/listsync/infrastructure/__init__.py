"""Infrastructure layer — reference store, command channels, workspace.

The store and channels are the external collaborators of the drag core:
the core writes commands to a channel and never waits for the store.
"""
