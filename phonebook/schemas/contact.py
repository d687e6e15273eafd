# phonebook/schemas/contact.py

from pydantic import BaseModel, Field


# Payload accepted by POST /contacts and PUT /contacts/{id}
class ContactCreate(BaseModel):
    first_name: str = Field(..., description="First name of the contact.")
    last_name: str = Field(..., description="Last name of the contact.")
    phone: str = Field(..., description="Phone number, stored as given.")
    address: str = Field(..., description="Postal address, stored as given.")

    # The id is owned by the database; anything else the client sends is dropped.
    model_config = {"extra": "ignore"}


class ContactRead(BaseModel):
    """
    DTO for reading a contact from the API.
    Notes:
    - Same shape as one element of a cached page.
    - id is assigned by the database and immutable.
    """
    id: int
    first_name: str
    last_name: str
    phone: str
    address: str
