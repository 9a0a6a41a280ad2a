"""
Database Schemas for the Community Site Admin API

Each Pydantic model represents a collection in MongoDB.
The collection name is the lowercase class name.

Example: class Event -> "event" collection
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class Event(BaseModel):
    """Events collection schema -> collection: "event\""""
    schedule: Optional[str] = None
    venue: Optional[str] = None
    title: Optional[str] = None
    type: Optional[str] = Field(None, description="e.g., Hackathon, Workshop")
    fee: Optional[str] = None
    description: Optional[str] = None
    wacommunity: Optional[str] = Field(None, description="WhatsApp community link")
    registerlink: Optional[str] = None
    paymentname: Optional[str] = None
    prize: Optional[str] = None
    duration: Optional[str] = None
    teamSize: Optional[int] = None
    imagePath: str = Field(..., description="Relative path of the uploaded image")
    imageMimeType: Optional[str] = None


AdminRole = Literal["superadmin", "moderator", "viewer"]


class Admin(BaseModel):
    """Administrators collection schema -> collection: "admin\""""
    name: str
    username: str = Field(..., description="Unique per admin (checked before writes)")
    type: AdminRole = "moderator"
    password: str = Field(..., description="Stored as given, not hashed")


class Contact(BaseModel):
    """Contact form submissions -> collection: "contact\""""
    firstName: str = Field(..., min_length=1)
    lastName: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    phone: Optional[str] = None
    message: str = Field(..., min_length=1)
    createdAt: datetime


class SocialMediaLinks(BaseModel):
    instagram: Optional[str] = None
    x: Optional[str] = Field(None, description="Twitter (X)")
    facebook: Optional[str] = None
    github: Optional[str] = None


class Milestone(BaseModel):
    title: str
    value: str = Field(..., description='e.g., "8,98,884+", "100+"')


class Logo(BaseModel):
    name: str = ""
    imagePath: str = ""


class OfficeDetails(BaseModel):
    address: Optional[str] = None
    contactNumber: Optional[str] = None
    email: Optional[str] = None


class Systemdata(BaseModel):
    """Site-wide settings, at most one document -> collection: "systemdata\""""
    socialMediaLinks: SocialMediaLinks = Field(default_factory=SocialMediaLinks)
    milestones: List[Milestone] = Field(default_factory=list)
    logo: Logo = Field(default_factory=Logo)
    officeDetails: OfficeDetails = Field(default_factory=OfficeDetails)
    promoVideoPath: str = ""
    createdAt: datetime
    updatedAt: datetime


class Member(BaseModel):
    name: str
    subtitle: str
    imagePath: str = ""


class Team(BaseModel):
    """Team designations, each with its members -> collection: "team\""""
    title: str = Field(..., description="e.g., Founder, Co-Founder")
    members: List[Member] = Field(default_factory=list)
