"""Domain layer: entity declarations, errors and repository interfaces.

Nothing in this package imports SQLAlchemy or a database driver.
"""
