"""
Quiz selection constants.

Pure constants only, no runtime configuration or path defaults.
"""

# Number of brand-new cards introduced per session when the caller gives none.
DEFAULT_MAX_NEW_CARDS: int = 20

# Environment variable consulted by the CLI for the database path.
DB_PATH_ENVVAR: str = "QUIZDECK_DB"
