from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from BookstoreAPI.data_model.purchase import Number, PurchaseRecordResponse


class Address(BaseModel):
    street: Optional[str] = None
    number: Optional[Number] = None


class UserCreate(BaseModel):
    """
    Fields a client may supply when creating a user.

    Identifier, purchase history and timestamps are owned by the server.
    """
    first_name: str = Field(..., alias="firstName")
    last_name: str = Field(..., alias="lastName")
    email: str = Field(..., description="Email address")
    date_of_birth: datetime = Field(..., alias="dateOfBirth")
    age: Number = Field(..., description="Age in years")
    address: Optional[Address] = None
    professions: List[str] = Field(default_factory=list)

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "firstName": "Ada",
                "lastName": "Lovelace",
                "email": "ada@example.com",
                "dateOfBirth": "1990-12-10T00:00:00Z",
                "age": 34,
                "address": {"street": "Main Street", "number": 12},
                "professions": ["mathematician"]
            }
        }


class UserUpdate(BaseModel):
    """
    Fields accepted by PUT /users/{userId}.

    Same types as UserCreate, but every field may be omitted. Required
    fields may not be cleared with an explicit null.
    """
    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")
    email: Optional[str] = None
    date_of_birth: Optional[datetime] = Field(None, alias="dateOfBirth")
    age: Optional[Number] = None
    address: Optional[Address] = None
    professions: Optional[List[str]] = None

    @model_validator(mode="after")
    def validate_required_not_null(self):
        for name in ("first_name", "last_name", "email", "date_of_birth", "age"):
            if name in self.model_fields_set and getattr(self, name) is None:
                alias = type(self).model_fields[name].alias or name
                raise ValueError(f"{alias} is required and cannot be null")
        return self

    class Config:
        populate_by_name = True


class UserCreatedResponse(BaseModel):
    id: str = Field(..., alias="_id")

    class Config:
        populate_by_name = True


class UserResponse(BaseModel):
    """
    User document as returned to clients.
    """
    id: str = Field(..., alias="_id")
    first_name: str = Field(..., alias="firstName")
    last_name: str = Field(..., alias="lastName")
    email: str
    date_of_birth: datetime = Field(..., alias="dateOfBirth")
    age: Number
    address: Optional[Address] = None
    professions: List[str] = Field(default_factory=list)
    purchase_history: List[PurchaseRecordResponse] = Field(default_factory=list, alias="purchaseHistory")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    class Config:
        populate_by_name = True
