from pydantic import BaseModel, Field, field_validator
from typing import Optional, List


class RoomTypeBase(BaseModel):
    slug: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=100)
    description: str = ""
    long_description: str = ""
    price_per_night: float = Field(..., ge=0)
    size: str = ""
    bed_type: str = ""
    max_adults: Optional[int] = Field(None, ge=1)
    max_children: int = Field(default=0, ge=0)
    max_guests: Optional[int] = Field(None, ge=1, description="Derived from adults + children when omitted")
    total_rooms: int = Field(..., ge=1, description="Ceiling on physical rooms of this type")
    amenities: List[str] = Field(default_factory=list)
    perks: List[str] = Field(default_factory=list)
    services: List[str] = Field(default_factory=list)
    main_image: str = ""
    gallery: List[str] = Field(default_factory=list)

    @field_validator("slug")
    @classmethod
    def normalise_slug(cls, v: str):
        v = v.strip().lower()
        if not v:
            raise ValueError("slug must not be blank")
        return v


class RoomTypeCreate(RoomTypeBase):
    pass


class RoomTypeUpdate(BaseModel):
    slug: Optional[str] = Field(None, min_length=1, max_length=100)
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    long_description: Optional[str] = None
    price_per_night: Optional[float] = Field(None, ge=0)
    size: Optional[str] = None
    bed_type: Optional[str] = None
    max_adults: Optional[int] = Field(None, ge=1)
    max_children: Optional[int] = Field(None, ge=0)
    max_guests: Optional[int] = Field(None, ge=1)
    total_rooms: Optional[int] = Field(None, ge=1)
    amenities: Optional[List[str]] = None
    perks: Optional[List[str]] = None
    services: Optional[List[str]] = None
    main_image: Optional[str] = None
    gallery: Optional[List[str]] = None

    @field_validator("slug")
    @classmethod
    def normalise_slug(cls, v: Optional[str]):
        return v.strip().lower() if v is not None else v


class RoomTypeResponse(BaseModel):
    id: str
    slug: str
    name: str
    description: str = ""
    long_description: str = ""
    price_per_night: float
    size: str = ""
    bed_type: str = ""
    max_guests: int
    max_adults: int
    max_children: int = 0
    total_rooms: int
    created_rooms: int = 0
    available_rooms: int = 0
    amenities: List[str] = Field(default_factory=list)
    perks: List[str] = Field(default_factory=list)
    services: List[str] = Field(default_factory=list)
    main_image: str = ""
    gallery: List[str] = Field(default_factory=list)
    is_active: bool = True
    created_at: Optional[str] = None
