"""Declarative base shared by all FoodConnect ORM models."""

from sqlalchemy.orm import declarative_base

Base = declarative_base()
