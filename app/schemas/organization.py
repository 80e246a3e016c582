from pydantic import BaseModel

class OrganizationBase(BaseModel):
    name: str
    slug: str
    is_active: bool = True

class OrganizationCreate(OrganizationBase):
    pass

class OrganizationRead(OrganizationBase):
    id: int

    class Config:
        from_attributes = True
