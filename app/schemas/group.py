from datetime import datetime
from pydantic import BaseModel, EmailStr, Field

class GroupCreate(BaseModel):
    name: str = Field(min_length=1)

class GroupOut(BaseModel):
    id: int
    name: str
    created_at: datetime | None = None

    class Config:
        from_attributes = True

class MemberCreate(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr | None = None

class GroupMemberOut(BaseModel):
    id: int
    group_id: int
    name: str
    email: EmailStr | None = None

    class Config:
        from_attributes = True
