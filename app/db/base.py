# app/db/base.py
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models in the Agent CRM Calendar service.

    Models register themselves on Base.metadata when imported; app.db.session
    imports them before creating tables.
    """
    pass
