"""
SQLAlchemy ORM models for database tables.

For the Message record exchanged between layers, see schemas.py.
"""

from sqlalchemy import Column, String

from demo.storage import Base


class MessageRow(Base):
    """
    Table: messages
    Primary Key: id (uniqueness is enforced here, not in the service)
    """
    __tablename__ = "messages"

    id = Column(String(60), primary_key=True)
    text = Column(String, nullable=False)
