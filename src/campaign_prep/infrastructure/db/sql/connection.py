import os

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# bootstrap only selects the SQL store when PREP_DATABASE_URL is set; the
# in-memory fallback applies when this module is imported without it (tests).
DATABASE_URL = os.getenv("PREP_DATABASE_URL") or "sqlite://"

engine = create_engine(DATABASE_URL, echo=False, future=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
