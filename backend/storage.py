# backend/storage.py
"""
Data-access layer.

Every read and write the HTTP handlers need goes through ``Storage`` so the
handlers stay thin. Upserts are done by looking up the row on its unique key
and updating it in place, otherwise inserting a new one.
"""
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from werkzeug.security import generate_password_hash, check_password_hash

from models import (
    db, User, UserFavorite, UserRating, UserList, UserListItem, Post, Follow,
)

SEARCH_LIMIT = 20


class StorageError(Exception):
    """Base class for errors the HTTP layer turns into responses."""

    status_code = 400

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class NotFound(StorageError):
    status_code = 404


class Conflict(StorageError):
    status_code = 409


class InvalidOperation(StorageError):
    status_code = 400


def _none_if_empty(value):
    return value or None


class Storage:

    def _commit_or_conflict(self, message):
        # unique constraints still decide when two requests race past the lookups
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise Conflict(message) from None

    # ---------------- USERS ----------------
    def get_user(self, user_id):
        return db.session.get(User, user_id)

    def get_user_by_username(self, username):
        return User.query.filter_by(username=username).first()

    def get_user_by_email(self, email):
        return User.query.filter_by(email=email).first()

    def get_user_by_login(self, name_or_email):
        return User.query.filter(
            (User.username == name_or_email) | (User.email == name_or_email)
        ).first()

    def create_user(self, username, email, password, name):
        if self.get_user_by_username(username):
            raise Conflict("Username already exists")
        if self.get_user_by_email(email):
            raise Conflict("Email already exists")

        u = User(
            username=username,
            email=email,
            password_hash=generate_password_hash(password),
            name=name,
        )
        db.session.add(u)
        self._commit_or_conflict("Username or email already exists")
        return u

    def check_password(self, user, password):
        return check_password_hash(user.password_hash, password)

    def update_user_bio(self, user_id, bio):
        u = self.require_user(user_id)
        u.bio = bio
        db.session.commit()
        return u

    def update_profile(self, user_id, name=None, email=None, bio=None, avatar_url=None):
        u = self.require_user(user_id)

        if email is not None and email != u.email:
            other = self.get_user_by_email(email)
            if other and other.id != u.id:
                raise Conflict("Email already exists")
            u.email = email
        if name is not None:
            u.name = name
        if bio is not None:
            u.bio = bio
        # avatar is replaced even when cleared
        u.avatar_url = avatar_url

        db.session.commit()
        return u

    def change_password(self, user_id, current_password, new_password):
        u = self.require_user(user_id)
        if not self.check_password(u, current_password):
            raise InvalidOperation("Current password is incorrect")
        u.password_hash = generate_password_hash(new_password)
        db.session.commit()
        return u

    def delete_user(self, user_id):
        u = self.require_user(user_id)

        list_ids = [l.id for l in UserList.query.filter_by(user_id=user_id).all()]
        if list_ids:
            UserListItem.query.filter(UserListItem.list_id.in_(list_ids)).delete(synchronize_session=False)
        UserList.query.filter_by(user_id=user_id).delete()
        UserFavorite.query.filter_by(user_id=user_id).delete()
        UserRating.query.filter_by(user_id=user_id).delete()
        Post.query.filter_by(user_id=user_id).delete()
        Follow.query.filter(
            (Follow.follower_id == user_id) | (Follow.following_id == user_id)
        ).delete(synchronize_session=False)

        db.session.delete(u)
        db.session.commit()

    def require_user(self, user_id):
        u = self.get_user(user_id)
        if not u:
            raise NotFound("User not found")
        return u

    # ---------------- FAVORITES ----------------
    def get_favorites(self, user_id):
        return UserFavorite.query.filter_by(user_id=user_id).all()

    def set_favorite(self, user_id, category, title, media_id=None, media_image=None):
        fav = UserFavorite.query.filter_by(user_id=user_id, category=category).first()

        if fav:
            fav.title = title
            fav.media_id = _none_if_empty(media_id)
            fav.media_image = _none_if_empty(media_image)
        else:
            fav = UserFavorite(
                user_id=user_id,
                category=category,
                title=title,
                media_id=_none_if_empty(media_id),
                media_image=_none_if_empty(media_image),
            )
            db.session.add(fav)

        db.session.commit()
        return fav

    def delete_favorite(self, user_id, category):
        UserFavorite.query.filter_by(user_id=user_id, category=category).delete()
        db.session.commit()

    # ---------------- RATINGS ----------------
    def get_ratings(self, user_id):
        return UserRating.query.filter_by(user_id=user_id).all()

    def upsert_rating(self, user_id, media_id, media_type, media_title, rating,
                      media_image=None, comment=None):
        r = self._stage_rating(user_id, media_id, media_type, media_title, rating,
                               media_image=media_image, comment=comment)
        db.session.commit()
        return r

    def _stage_rating(self, user_id, media_id, media_type, media_title, rating,
                      media_image=None, comment=None):
        r = UserRating.query.filter_by(
            user_id=user_id, media_id=media_id, media_type=media_type
        ).first()

        if r:
            r.rating = rating
            r.comment = comment or ""
            r.media_title = media_title
            r.media_image = _none_if_empty(media_image)
        else:
            r = UserRating(
                user_id=user_id,
                media_id=media_id,
                media_type=media_type,
                media_title=media_title,
                media_image=_none_if_empty(media_image),
                rating=rating,
                comment=comment or "",
            )
            db.session.add(r)

        return r

    def delete_rating(self, user_id, media_id, media_type):
        UserRating.query.filter_by(
            user_id=user_id, media_id=media_id, media_type=media_type
        ).delete()
        db.session.commit()

    def get_rating_stats(self, user_id):
        dist = {1: 0, 2: 0, 3: 0, 4: 0, 5: 0}
        cats = {}

        for r in self.get_ratings(user_id):
            dist[r.rating] = dist.get(r.rating, 0) + 1
            cats[r.media_type] = cats.get(r.media_type, 0) + 1

        return {
            "distribution": [{"stars": s, "count": dist.get(s, 0)} for s in (5, 4, 3, 2, 1)],
            "categoryStats": [{"category": c, "count": n} for c, n in cats.items()],
        }

    # ---------------- LISTS ----------------
    def _item_count(self, list_id):
        return (
            db.session.query(func.count(UserListItem.id))
            .filter(UserListItem.list_id == list_id)
            .scalar()
        ) or 0

    def get_lists(self, user_id):
        lists = UserList.query.filter_by(user_id=user_id).order_by(UserList.created_at.desc()).all()
        return [dict(l.to_dict(), itemCount=self._item_count(l.id)) for l in lists]

    def get_list_by_id(self, list_id):
        return db.session.get(UserList, list_id)

    def get_owned_list(self, user_id, list_id):
        l = self.get_list_by_id(list_id)
        if not l or l.user_id != user_id:
            raise NotFound("List not found")
        return l

    def create_list(self, user_id, name, cover_image=None, description=None):
        l = UserList(
            user_id=user_id,
            name=name,
            cover_image=_none_if_empty(cover_image),
            description=description or "",
        )
        db.session.add(l)
        db.session.commit()
        return l

    def update_list(self, user_id, list_id, name=None, description=None, cover_image=None):
        l = self.get_owned_list(user_id, list_id)

        if name is not None:
            l.name = name
        if description is not None:
            l.description = description
        if cover_image is not None:
            l.cover_image = cover_image

        db.session.commit()
        return l

    def delete_list(self, user_id, list_id):
        l = self.get_owned_list(user_id, list_id)
        UserListItem.query.filter_by(list_id=l.id).delete()
        db.session.delete(l)
        db.session.commit()

    def get_list_items(self, list_id):
        return UserListItem.query.filter_by(list_id=list_id).order_by(UserListItem.added_at).all()

    def add_list_item(self, list_id, media_id, media_type, media_title, media_image=None):
        item = UserListItem(
            list_id=list_id,
            media_id=media_id,
            media_type=media_type,
            media_title=media_title,
            media_image=_none_if_empty(media_image),
        )
        db.session.add(item)
        db.session.commit()
        return item

    def remove_list_item(self, list_id, item_id):
        item = db.session.get(UserListItem, item_id)
        if not item or item.list_id != list_id:
            raise NotFound("Item not found")
        db.session.delete(item)
        db.session.commit()

    def search_lists(self, query):
        rows = (
            db.session.query(UserList, User)
            .join(User, UserList.user_id == User.id)
            .filter(UserList.name.ilike(f"%{query}%"))
            .limit(SEARCH_LIMIT)
            .all()
        )
        return [{
            "id": l.id,
            "name": l.name,
            "coverImage": l.cover_image,
            "itemCount": self._item_count(l.id),
            "userName": u.name,
            "userId": u.id,
        } for l, u in rows]

    # ---------------- POSTS ----------------
    def find_post_by_user_and_media(self, user_id, media_id, media_type):
        return Post.query.filter_by(
            user_id=user_id, media_id=media_id, media_type=media_type
        ).first()

    def create_post(self, user_id, media_id, media_type, media_title, rating, comment,
                    media_image=None, is_favorite=None, first_time=None, has_spoilers=None):
        p = self._stage_post(user_id, media_id, media_type, media_title, rating, comment,
                             media_image, is_favorite, first_time, has_spoilers)
        db.session.commit()
        return p

    def publish_post(self, user_id, media_id, media_type, media_title, rating, comment,
                     media_image=None, is_favorite=None, first_time=None, has_spoilers=None):
        """Create a post and record it as the author's rating in one commit."""
        try:
            p = self._stage_post(user_id, media_id, media_type, media_title, rating, comment,
                                 media_image, is_favorite, first_time, has_spoilers)
            self._stage_rating(user_id, media_id, media_type, media_title, rating,
                               media_image=media_image, comment=comment)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return p

    def _stage_post(self, user_id, media_id, media_type, media_title, rating, comment,
                    media_image, is_favorite, first_time, has_spoilers):
        p = Post(
            user_id=user_id,
            media_id=media_id,
            media_type=media_type,
            media_title=media_title,
            media_image=_none_if_empty(media_image),
            rating=rating,
            comment=comment,
            is_favorite=bool(is_favorite),
            first_time=True if first_time is None else first_time,
            has_spoilers=bool(has_spoilers),
        )
        db.session.add(p)
        return p

    def _posts_with_authors(self, *criteria):
        q = db.session.query(Post, User).join(User, Post.user_id == User.id)
        if criteria:
            q = q.filter(*criteria)
        rows = q.order_by(Post.created_at.desc()).all()
        return [p.to_dict(author=u) for p, u in rows]

    def get_user_posts(self, user_id):
        return self._posts_with_authors(Post.user_id == user_id)

    def get_all_posts(self):
        return self._posts_with_authors()

    def get_feed(self, user_id):
        following = db.session.query(Follow.following_id).filter(Follow.follower_id == user_id)
        return self._posts_with_authors(
            or_(Post.user_id == user_id, Post.user_id.in_(following))
        )

    # ---------------- SOCIAL ----------------
    def search_users(self, query):
        users = (
            User.query
            .filter(or_(User.name.ilike(f"%{query}%"), User.username.ilike(f"%{query}%")))
            .limit(SEARCH_LIMIT)
            .all()
        )
        return [{
            "id": u.id,
            "name": u.name,
            "username": u.username,
            "avatarUrl": u.avatar_url,
            "bio": u.bio,
        } for u in users]

    def follow_user(self, follower_id, following_id):
        if follower_id == following_id:
            raise InvalidOperation("You cannot follow yourself")
        self.require_user(following_id)

        if not self.is_following(follower_id, following_id):
            db.session.add(Follow(follower_id=follower_id, following_id=following_id))
            try:
                db.session.commit()
            except IntegrityError:
                # a concurrent request inserted the same pair
                db.session.rollback()

    def unfollow_user(self, follower_id, following_id):
        Follow.query.filter_by(follower_id=follower_id, following_id=following_id).delete()
        db.session.commit()

    def is_following(self, follower_id, following_id):
        return Follow.query.filter_by(
            follower_id=follower_id, following_id=following_id
        ).first() is not None

    def get_follower_count(self, user_id):
        return Follow.query.filter_by(following_id=user_id).count()

    def get_following_count(self, user_id):
        return Follow.query.filter_by(follower_id=user_id).count()

    def get_public_profile(self, user_id):
        u = self.require_user(user_id)
        return {
            "user": u.to_dict(),
            "favorites": [f.to_dict() for f in self.get_favorites(user_id)],
            "stats": self.get_rating_stats(user_id),
            "posts": self.get_user_posts(user_id),
            "listCount": UserList.query.filter_by(user_id=user_id).count(),
        }


storage = Storage()
