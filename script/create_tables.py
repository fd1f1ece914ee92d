# create_tables.py
from sqlalchemy import inspect

from quizora.model import users, modules, questions, quizzes, results, quiz_windows, verification_codes  # noqa: F401
from quizora.database.base_class import Base
from quizora.database.session import get_engine, SQLALCHEMY_DATABASE_URL
from quizora.log import get_logger

logger = get_logger("create_tables")

engine = get_engine(SQLALCHEMY_DATABASE_URL)

Base.metadata.create_all(bind=engine)
logger.info("Tables created.")

inspector = inspect(engine)
logger.info(f"Existing tables: {inspector.get_table_names()}")
