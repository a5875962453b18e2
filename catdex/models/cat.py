"""
Catdex — Cat SQLAlchemy Model
===============================

What:  ORM model representing the `cats` table.
Who:   Used by CatRepository for queries and by Alembic for schema management.

Table Design:
    - id: integer primary key assigned by the database at insert time
    - name: client-supplied label, never empty
    - image_path: public URL path of the stored image (e.g. /image/<hex>.png),
      derived by the server from where the upload was written
"""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from catdex.database import Base


class Cat(Base):
    """
    A catalog record.

    Lifecycle:
        Created only by POST /api/add_cat; never updated or deleted by the service.
    """

    __tablename__ = "cats"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    image_path: Mapped[str] = mapped_column(String, nullable=False)

    def __repr__(self) -> str:
        return f"<Cat(id={self.id}, name='{self.name}', image_path='{self.image_path}')>"
