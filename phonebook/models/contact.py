# models/contact.py

from sqlalchemy import Column, Integer, String
from phonebook.database import Base


class Contact(Base):
    __tablename__ = "contacts"

    # Assigned by the database on insert, never changed afterwards
    id = Column(Integer, primary_key=True, autoincrement=True)

    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    phone = Column(String(64), nullable=False)
    address = Column(String(512), nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "phone": self.phone,
            "address": self.address,
        }
