from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, Float, Index, JSON, CheckConstraint
from sqlalchemy.orm import declarative_base
from datetime import datetime, timezone
import uuid

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Joke(Base):
    """Joke model for storing jokes"""
    __tablename__ = 'jokes'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    text = Column(Text, nullable=False)
    category = Column(String(100), nullable=False, index=True)
    source = Column(String(255), nullable=False, default='')
    explanation = Column(Text, nullable=True)
    date_added = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    used = Column(Boolean, nullable=False, default=False)
    funny_rate = Column(Integer, nullable=False, default=0)
    user_id = Column(String(128), nullable=False, index=True)

    # Denormalized from joke_ratings
    average_rating = Column(Float, nullable=True)
    rating_count = Column(Integer, nullable=False, default=0)

    keywords = Column(JSON(none_as_null=True), nullable=True)

    __table_args__ = (
        CheckConstraint('funny_rate >= 0 AND funny_rate <= 5', name='check_funny_rate_bounds'),
        Index('idx_joke_date_added', 'date_added', 'id'),
        Index('idx_joke_user_date_added', 'user_id', 'date_added'),
    )

    def __repr__(self):
        return f"<Joke(id={self.id}, category={self.category})>"


class Category(Base):
    """Per-user category names, created lazily on first use"""
    __tablename__ = 'categories'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False)
    user_id = Column(String(128), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index('idx_category_user_name', 'user_id', 'name', unique=True),
    )

    def __repr__(self):
        return f"<Category(name={self.name}, user_id={self.user_id})>"


class JokeRating(Base):
    """One rating per (joke, user)"""
    __tablename__ = 'joke_ratings'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # Lookup key only, ratings are removed explicitly when a joke is deleted
    joke_id = Column(String(36), nullable=False, index=True)
    user_id = Column(String(128), nullable=False)
    rating_value = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint('rating_value >= 1 AND rating_value <= 5', name='check_rating_value_bounds'),
        Index('idx_rating_joke_user', 'joke_id', 'user_id', unique=True),
        Index('idx_rating_user_value_updated', 'user_id', 'rating_value', 'updated_at'),
    )

    def __repr__(self):
        return f"<JokeRating(joke_id={self.joke_id}, user_id={self.user_id}, value={self.rating_value})>"


class AppliedMigration(Base):
    """Bookkeeping for data migrations that have already run"""
    __tablename__ = 'migrations'

    name = Column(String(255), primary_key=True)
    applied_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self):
        return f"<AppliedMigration(name={self.name})>"
