from .seed import SeedReport, load_seed, load_seed_file
from .sqlite_store import SQLiteDocumentStore

__all__ = ["SQLiteDocumentStore", "SeedReport", "load_seed", "load_seed_file"]
