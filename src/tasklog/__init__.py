"""
tasklog: a local task and record log with paginated listing.

Components:
- items: item model, query compiler, SQLite store, listing and display cache
- core: application state and the Protocols the item services depend on
- cli: command registry, rendering and the `tasklog` entrypoint
"""
