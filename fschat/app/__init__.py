"""fschat HTTP application (FastAPI)."""
