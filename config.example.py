# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
See src/routine_companion/config.py for parsing and defaults.

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "ROUTINE_APP_NAME": "App display name (default: routine).",
    "ROUTINE_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Connectors
    "ROUTINE_CONSOLE_ENABLED": "Enable the console connector (true/false, default: true).",
    # Paths (gitignored)
    "ROUTINE_DATA_DIR": "Local data directory (default: .local/routine).",
    "ROUTINE_STORE_DB_PATH": "Key/value SQLite path (default: <data_dir>/store.sqlite3).",
    # Store tuning
    "ROUTINE_SAVE_DEBOUNCE_SECONDS": "Quiet interval before a batch of edits is written (default: 0.4).",
    "ROUTINE_TRASH_RETENTION_DAYS": "Days a trashed to-do is kept before it is purged (default: 7).",
    "ROUTINE_SEED_DEFAULT_ROUTINES": "Create the starter routines on first run (true/false, default: true).",
}
