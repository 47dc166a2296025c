"""Reset database (development only)."""

from gator.config import get_settings
from gator.db.migrate import migrate


def reset() -> None:
    """Delete the database file and recreate the schema."""
    db_path = get_settings().db_path

    # WAL and SHM files go with the main file
    for path in (db_path, db_path.with_suffix(".db-wal"), db_path.with_suffix(".db-shm")):
        if path.exists():
            path.unlink()
            print(f"✓ Deleted {path}")

    migrate()
    print("✓ Database reset complete")


if __name__ == "__main__":
    reset()
