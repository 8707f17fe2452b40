# init_db.py

from sqlalchemy.engine import create_engine
from app.config import settings
from app.db.session import init_db


def init():
    print("Connecting to database...")
    engine = create_engine(settings.DATABASE_URL)

    print("Creating tables (if not exist)...")
    init_db(bind=engine)

    print("✅ Done.")


if __name__ == "__main__":
    init()
