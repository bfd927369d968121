"""Infrastructure layer: SQLAlchemy-backed persistence and engine settings."""
