from .database import Database, init_database, ENTITY_TABLES

__all__ = ["Database", "init_database", "ENTITY_TABLES"]
