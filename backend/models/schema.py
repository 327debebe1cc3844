"""
SQLAlchemy models for the business contact manager.

This module defines the database schema using SQLAlchemy ORM,
matching the schema defined in Alembic migrations.
"""

from sqlalchemy import (
    Column, Integer, String, Text, CheckConstraint, Index
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Company columns that callers may set (everything except the identifier)
COMPANY_FIELDS = (
    'name',
    'contact',
    'email',
    'phone',
    'industry',
    'location',
    'employees',
    'revenue',
    'status',
    'last_contact',
)

# Columns matched by substring search
SEARCHABLE_FIELDS = ('name', 'contact', 'email', 'industry', 'location')


class Company(Base):
    """Represents a business contact record."""

    __tablename__ = 'companies'
    __table_args__ = (
        CheckConstraint('employees >= 0', name='companies_employees_check'),
        Index('idx_companies_name', 'name'),
        Index('idx_companies_email', 'email'),
        {
            'comment': 'Business contacts managed by the application',
            'sqlite_autoincrement': True,
        }
    )

    id = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        nullable=False
    )
    name = Column(
        Text,
        nullable=False,
        comment='Company name'
    )
    contact = Column(
        Text,
        nullable=False,
        comment='Contact person'
    )
    email = Column(
        Text,
        nullable=False,
        comment='Contact email address'
    )
    phone = Column(
        Text,
        nullable=False,
        comment='Contact phone number'
    )
    industry = Column(
        Text,
        nullable=False,
        comment='Industry or sector'
    )
    location = Column(
        Text,
        nullable=False,
        comment='City, region or address'
    )
    employees = Column(
        Integer,
        nullable=False,
        comment='Number of employees'
    )
    revenue = Column(
        Text,
        nullable=False,
        comment='Free-text revenue figure, e.g. $25M'
    )
    status = Column(
        String(50),
        nullable=False,
        comment='Relationship status label: Active, Pending, Inactive, New'
    )
    last_contact = Column(
        'lastContact',
        Text,
        nullable=False,
        comment='Date of last contact (YYYY-MM-DD)'
    )

    def __repr__(self):
        return f"<Company(id={self.id}, name='{self.name}', status='{self.status}')>"

    def to_dict(self) -> dict:
        """Convert company to dictionary representation."""
        return {
            'id': self.id,
            'name': self.name,
            'contact': self.contact,
            'email': self.email,
            'phone': self.phone,
            'industry': self.industry,
            'location': self.location,
            'employees': self.employees,
            'revenue': self.revenue,
            'status': self.status,
            'last_contact': self.last_contact
        }


class User(Base):
    """Represents an application account."""

    __tablename__ = 'users'
    __table_args__ = (
        {
            'comment': 'Application accounts',
            'sqlite_autoincrement': True,
        },
    )

    id = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        nullable=False
    )
    username = Column(
        Text,
        nullable=False,
        unique=True,
        comment='Unique login name'
    )
    password = Column(
        Text,
        nullable=False,
        comment='Opaque password value'
    )

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}')>"

    def to_dict(self) -> dict:
        """Convert user to dictionary representation."""
        return {
            'id': self.id,
            'username': self.username,
            'password': self.password
        }
