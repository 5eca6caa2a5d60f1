# backend/models.py
import uuid
from flask_sqlalchemy import SQLAlchemy
from datetime import datetime

db = SQLAlchemy()

CATEGORIES = ("film", "series", "music", "anime", "manga", "book")


def new_id():
    return str(uuid.uuid4())


def iso(value):
    return value.isoformat() if value else None


class User(db.Model):
    __tablename__ = "users"
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    username = db.Column(db.String(50), unique=True, nullable=False)
    email = db.Column(db.String(100), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    bio = db.Column(db.Text, default="")
    avatar_url = db.Column(db.String(500))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        # password_hash stays server side
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "name": self.name,
            "bio": self.bio,
            "avatarUrl": self.avatar_url,
            "createdAt": iso(self.created_at),
        }


class UserFavorite(db.Model):
    __tablename__ = "user_favorites"
    __table_args__ = (
        db.UniqueConstraint("user_id", "category", name="user_favorites_user_category_idx"),
    )
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    category = db.Column(db.String(20), nullable=False)
    title = db.Column(db.String(300), nullable=False)
    media_id = db.Column(db.String(100))
    media_image = db.Column(db.String(500))

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "category": self.category,
            "title": self.title,
            "mediaId": self.media_id,
            "mediaImage": self.media_image,
        }


class UserRating(db.Model):
    __tablename__ = "user_ratings"
    __table_args__ = (
        db.UniqueConstraint("user_id", "media_id", "media_type", name="user_ratings_user_media_idx"),
    )
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    media_id = db.Column(db.String(100), nullable=False)
    media_type = db.Column(db.String(20), nullable=False)
    media_title = db.Column(db.String(300), nullable=False)
    media_image = db.Column(db.String(500))
    rating = db.Column(db.Integer, nullable=False)
    comment = db.Column(db.Text, default="")
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "mediaId": self.media_id,
            "mediaType": self.media_type,
            "mediaTitle": self.media_title,
            "mediaImage": self.media_image,
            "rating": self.rating,
            "comment": self.comment,
            "createdAt": iso(self.created_at),
        }


class UserList(db.Model):
    __tablename__ = "user_lists"
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, default="")
    cover_image = db.Column(db.String(500))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "name": self.name,
            "description": self.description,
            "coverImage": self.cover_image,
            "createdAt": iso(self.created_at),
        }


class UserListItem(db.Model):
    __tablename__ = "user_list_items"
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    list_id = db.Column(db.String(36), db.ForeignKey("user_lists.id"), nullable=False)
    media_id = db.Column(db.String(100), nullable=False)
    media_type = db.Column(db.String(20), nullable=False)
    media_title = db.Column(db.String(300), nullable=False)
    media_image = db.Column(db.String(500))
    added_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "listId": self.list_id,
            "mediaId": self.media_id,
            "mediaType": self.media_type,
            "mediaTitle": self.media_title,
            "mediaImage": self.media_image,
            "addedAt": iso(self.added_at),
        }


class Post(db.Model):
    __tablename__ = "posts"
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    media_id = db.Column(db.String(100), nullable=False)
    media_type = db.Column(db.String(20), nullable=False)
    media_title = db.Column(db.String(300), nullable=False)
    media_image = db.Column(db.String(500))
    rating = db.Column(db.Integer, nullable=False)
    comment = db.Column(db.Text, nullable=False)
    is_favorite = db.Column(db.Boolean, default=False)
    first_time = db.Column(db.Boolean, default=True)
    has_spoilers = db.Column(db.Boolean, default=False)
    like_count = db.Column(db.Integer, default=0)
    comment_count = db.Column(db.Integer, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self, author=None):
        data = {
            "id": self.id,
            "userId": self.user_id,
            "mediaId": self.media_id,
            "mediaType": self.media_type,
            "mediaTitle": self.media_title,
            "mediaImage": self.media_image,
            "rating": self.rating,
            "comment": self.comment,
            "isFavorite": self.is_favorite,
            "firstTime": self.first_time,
            "hasSpoilers": self.has_spoilers,
            "likeCount": self.like_count,
            "commentCount": self.comment_count,
            "createdAt": iso(self.created_at),
        }
        if author is not None:
            data["userName"] = author.name
            data["userAvatar"] = author.avatar_url
        return data


class Follow(db.Model):
    __tablename__ = "follows"
    __table_args__ = (
        db.UniqueConstraint("follower_id", "following_id", name="follows_pair_idx"),
    )
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    follower_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    following_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
