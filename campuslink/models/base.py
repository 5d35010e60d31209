from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Declarative base shared by every SQLAlchemy model.

    Alembic's env.py reads ``Base.metadata`` for autogenerate.
    """

    pass
