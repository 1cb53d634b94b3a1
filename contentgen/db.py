from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from contentgen.utils.config import settings


SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

# For SQLite, check_same_thread=False is required only for multi-threaded contexts.
connect_args = {}
if SQLALCHEMY_DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args=connect_args, pool_pre_ping=True
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()
