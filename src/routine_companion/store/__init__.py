"""
Store subsystem.

Components:
- store_models.py: data structures (RoutineRecord, TodoRecord, RoutineCategory)
- store_codec.py: JSON encoding of the persisted collections
- kv_store.py: key/value blob storage (SQLite, in-memory)
- save_scheduler.py: debounced save timer on the event loop
- app_store.py: AppStore, the single owner of all records
- promotion.py: brain dump -> to-do and to-do -> routine promotion with dedup
"""
