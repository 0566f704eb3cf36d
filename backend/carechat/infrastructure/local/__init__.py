"""Local infrastructure implementations (SQLite, LiteLLM, HTTP)."""
