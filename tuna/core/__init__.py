"""
Core application engine.

`SyncSession` runs one refresh cycle per song snapshot, delegating cover
and lyrics to `AssetSync` and text rendering to the `OutputWriter`. The
`CompatibilityGate` decides once per run whether the VLC module is loaded.
"""
