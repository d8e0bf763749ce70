"""
Database Schemas for the Afterschool booking app

Each Pydantic model represents a document collection. The collection name is the lowercase of the class name.

- Lesson -> "lesson"
- Cart -> "cart"
- Order -> "order"
- User -> "user"

Documents are stored with the camelCase keys the web client reads, so dump with by_alias=True.
"""
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class Document(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Lesson(Document):
    id: str = Field(..., alias="_id", description="Lesson id")
    subject: str = Field(..., description="Lesson subject")
    location: str = Field(..., description="Room")
    price: float = Field(..., ge=0, description="Price per space")
    spaces: int = Field(..., description="Remaining spaces")
    image: Optional[str] = Field(None, description="Image file name")


class CartItem(Document):
    lesson_id: str = Field(..., alias="lessonId")
    subject: str = Field(..., description="Subject at the time it was added")
    price: float = Field(..., ge=0, description="Price at the time it was added")
    qty: int = Field(1, ge=1)


class Cart(Document):
    user_id: str = Field(..., alias="userId")
    items: List[CartItem] = []


class OrderItem(Document):
    lesson_id: str = Field(..., alias="lessonId")
    qty: int = Field(..., ge=1)


class Order(Document):
    id: Optional[str] = Field(None, alias="_id")
    user_id: str = Field(..., alias="userId")
    name: str
    phone: str
    payment_method: str = Field("cash", alias="paymentMethod")
    items: List[OrderItem]
    total: float
    created_at: str = Field(..., alias="createdAt", description="ISO-8601 UTC timestamp")
    card_name: Optional[str] = Field(None, alias="cardName")
    card_last4: Optional[str] = Field(None, alias="cardLast4")


class User(Document):
    id: Optional[str] = Field(None, alias="_id")
    user: str = Field(..., description="External identifier, e.g. student number")
    password_hash: str = Field(..., alias="passwordHash", description="Hashed password")


# Request bodies

class Credentials(Document):
    user: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class AddToCart(Document):
    lesson_id: str = Field(..., alias="lessonId", min_length=1)
    qty: int = Field(..., ge=1)


class RemoveFromCart(Document):
    lesson_id: str = Field(..., alias="lessonId", min_length=1)


class OrderRequest(Document):
    name: str
    phone: str
    items: List[OrderItem]
    payment_method: str = Field("cash", alias="paymentMethod")
    card_number: Optional[str] = Field(None, alias="cardNumber")
    card_name: Optional[str] = Field(None, alias="cardName")
    expiry_date: Optional[str] = Field(None, alias="expiryDate")
    security_code: Optional[str] = Field(None, alias="securityCode")
