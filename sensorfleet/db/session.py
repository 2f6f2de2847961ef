from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sensorfleet.core.config import settings

engine = create_engine(settings.DATABASE_URL, future=True, echo=False)


@event.listens_for(engine, "connect")
def configure_connection(dbapi_connection, connection_record):
    """Pins the session time zone (PostgreSQL) or turns on FK enforcement (SQLite)."""
    cursor = dbapi_connection.cursor()
    if engine.dialect.name == "postgresql":
        cursor.execute("SET timezone = %s;", (settings.DB_TIMEZONE,))
    elif engine.dialect.name == "sqlite":
        cursor.execute("PRAGMA foreign_keys=ON;")
    cursor.close()


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """FastAPI dependency yielding a session that is always closed."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
