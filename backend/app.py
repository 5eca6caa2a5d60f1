# backend/app.py
import os
from flask import Flask, request, jsonify, g, current_app
from pydantic import ValidationError

import providers
import sessions
from config import Config
from models import db
from providers import ProviderError, ProviderNotConfigured
from schemas import (
    RegisterRequest, LoginRequest, ProfileUpdateRequest, BioRequest,
    PasswordChangeRequest, AccountDeleteRequest, FavoriteRequest, RatingRequest,
    ListCreateRequest, ListUpdateRequest, ListItemRequest, PostRequest,
)
from sessions import login_required, get_sessions
from storage import storage, StorageError, Conflict


def parse(schema):
    return schema.model_validate(request.get_json(silent=True) or {})


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    if not app.config.get("SQLALCHEMY_DATABASE_URI"):
        raise ValueError("Missing database configuration: set DATABASE_URL or the DB_* variables")

    db.init_app(app)
    sessions.init_app(app)
    providers.init_app(app)

    # Ensure DB tables exist
    with app.app_context():
        try:
            db.create_all()
        except Exception as e:
            app.logger.warning("DB create_all warning: %s", e)

    # ---------------- ERRORS ----------------
    @app.errorhandler(ValidationError)
    def invalid_body(e):
        errors = [{
            "field": ".".join(str(p) for p in err["loc"]),
            "message": err["msg"],
        } for err in e.errors()]
        return jsonify({"message": "Invalid request", "errors": errors}), 400

    @app.errorhandler(StorageError)
    def storage_error(e):
        return jsonify({"message": e.message}), e.status_code

    # ---------------- AUTH ----------------
    @app.route("/api/auth/register", methods=["POST"])
    def register():
        body = parse(RegisterRequest)
        u = storage.create_user(body.username, body.email, body.password, body.name)
        token = get_sessions().create(u.id)
        return jsonify({"user": u.to_dict(), "token": token}), 201

    @app.route("/api/auth/login", methods=["POST"])
    def login():
        body = parse(LoginRequest)
        u = storage.get_user_by_login(body.email)

        if not u or not storage.check_password(u, body.password):
            return jsonify({"message": "Invalid credentials"}), 401

        token = get_sessions().create(u.id)
        return jsonify({"user": u.to_dict(), "token": token})

    @app.route("/api/auth/logout", methods=["POST"])
    @login_required
    def logout():
        get_sessions().revoke(g.token)
        return jsonify({"ok": True})

    @app.route("/api/auth/me")
    @login_required
    def me():
        u = storage.get_user(g.user_id)
        if not u:
            return jsonify({"message": "Not authenticated"}), 401
        return jsonify({"user": u.to_dict()})

    # ---------------- MEDIA SEARCH ----------------
    def proxy(call, failure_message):
        try:
            return jsonify(call())
        except ProviderNotConfigured as e:
            return jsonify({"message": str(e)}), 500
        except ProviderError as e:
            current_app.logger.error("%s: %s", failure_message, e)
            return jsonify({"message": failure_message}), 500

    def search_query():
        return (request.args.get("q") or "").strip()

    def missing_query():
        return jsonify({"message": "Query parameter 'q' is required"}), 400

    def clients():
        return current_app.extensions["providers"]

    @app.route("/api/movies/trending")
    def movies_trending():
        return proxy(clients().tmdb.trending, "Failed to fetch movies")

    @app.route("/api/movies/search")
    def movies_search():
        q = search_query()
        if not q:
            return missing_query()
        return proxy(lambda: clients().tmdb.search(q), "Failed to search movies")

    @app.route("/api/books/search")
    def books_search():
        q = search_query()
        if not q:
            return missing_query()
        return proxy(lambda: clients().books.search(q), "Failed to search books")

    @app.route("/api/music/search")
    def music_search():
        q = search_query()
        if not q:
            return missing_query()
        return proxy(lambda: clients().music.search(q), "Failed to search music")

    @app.route("/api/anime/search")
    def anime_search():
        q = search_query()
        if not q:
            return missing_query()
        return proxy(lambda: clients().jikan.search_anime(q), "Failed to search anime")

    @app.route("/api/manga/search")
    def manga_search():
        q = search_query()
        if not q:
            return missing_query()
        return proxy(lambda: clients().jikan.search_manga(q), "Failed to search manga")

    # ---------------- PROFILE ----------------
    @app.route("/api/profile")
    @login_required
    def profile():
        u = storage.require_user(g.user_id)
        return jsonify({
            "user": u.to_dict(),
            "favorites": [f.to_dict() for f in storage.get_favorites(u.id)],
            "stats": storage.get_rating_stats(u.id),
            "lists": storage.get_lists(u.id),
            "followerCount": storage.get_follower_count(u.id),
            "followingCount": storage.get_following_count(u.id),
        })

    @app.route("/api/profile/update", methods=["PUT"])
    @login_required
    def profile_update():
        body = parse(ProfileUpdateRequest)
        u = storage.update_profile(
            g.user_id,
            name=body.name,
            email=body.email,
            bio=body.bio,
            avatar_url=body.avatar_url or None,
        )
        return jsonify({"user": u.to_dict()})

    @app.route("/api/profile/bio", methods=["PUT"])
    @login_required
    def profile_bio():
        body = parse(BioRequest)
        u = storage.update_user_bio(g.user_id, body.bio)
        return jsonify({"user": u.to_dict()})

    @app.route("/api/profile/password", methods=["PUT"])
    @login_required
    def profile_password():
        body = parse(PasswordChangeRequest)
        storage.change_password(g.user_id, body.current_password, body.new_password)
        return jsonify({"ok": True})

    @app.route("/api/profile/account", methods=["DELETE"])
    @login_required
    def profile_delete():
        body = parse(AccountDeleteRequest)
        u = storage.require_user(g.user_id)

        if not storage.check_password(u, body.password):
            return jsonify({"message": "Password is incorrect"}), 400

        storage.delete_user(g.user_id)
        get_sessions().revoke_user(g.user_id)
        return jsonify({"ok": True})

    # ---------------- FAVORITES ----------------
    @app.route("/api/profile/favorites")
    @login_required
    def favorites():
        return jsonify([f.to_dict() for f in storage.get_favorites(g.user_id)])

    @app.route("/api/profile/favorites", methods=["PUT"])
    @login_required
    def favorite_set():
        body = parse(FavoriteRequest)
        fav = storage.set_favorite(g.user_id, body.category, body.title, body.media_id, body.media_image)
        return jsonify(fav.to_dict())

    @app.route("/api/profile/favorites/<category>", methods=["DELETE"])
    @login_required
    def favorite_delete(category):
        storage.delete_favorite(g.user_id, category)
        return jsonify({"ok": True})

    # ---------------- RATINGS ----------------
    @app.route("/api/profile/ratings")
    @login_required
    def ratings():
        return jsonify([r.to_dict() for r in storage.get_ratings(g.user_id)])

    @app.route("/api/profile/ratings", methods=["POST"])
    @login_required
    def rate():
        body = parse(RatingRequest)
        r = storage.upsert_rating(
            g.user_id,
            media_id=body.media_id,
            media_type=body.media_type,
            media_title=body.media_title,
            rating=body.rating,
            media_image=body.media_image,
            comment=body.comment,
        )
        return jsonify(r.to_dict())

    @app.route("/api/profile/ratings/<media_type>/<media_id>", methods=["DELETE"])
    @login_required
    def rating_delete(media_type, media_id):
        storage.delete_rating(g.user_id, media_id, media_type)
        return jsonify({"ok": True})

    @app.route("/api/profile/stats")
    @login_required
    def rating_stats():
        return jsonify(storage.get_rating_stats(g.user_id))

    # ---------------- LISTS ----------------
    @app.route("/api/profile/lists")
    @login_required
    def lists():
        return jsonify(storage.get_lists(g.user_id))

    @app.route("/api/profile/lists", methods=["POST"])
    @login_required
    def list_create():
        body = parse(ListCreateRequest)
        l = storage.create_list(g.user_id, body.name, body.cover_image, body.description)
        return jsonify(l.to_dict()), 201

    @app.route("/api/profile/lists/<list_id>")
    @login_required
    def list_detail(list_id):
        l = storage.get_owned_list(g.user_id, list_id)
        items = storage.get_list_items(l.id)
        return jsonify({"list": l.to_dict(), "items": [i.to_dict() for i in items]})

    @app.route("/api/profile/lists/<list_id>", methods=["PATCH"])
    @login_required
    def list_update(list_id):
        body = parse(ListUpdateRequest)
        l = storage.update_list(
            g.user_id, list_id,
            name=body.name,
            description=body.description,
            cover_image=body.cover_image,
        )
        return jsonify({"list": l.to_dict()})

    @app.route("/api/profile/lists/<list_id>", methods=["DELETE"])
    @login_required
    def list_delete(list_id):
        storage.delete_list(g.user_id, list_id)
        return jsonify({"ok": True})

    @app.route("/api/profile/lists/<list_id>/items", methods=["POST"])
    @login_required
    def list_item_add(list_id):
        body = parse(ListItemRequest)
        l = storage.get_owned_list(g.user_id, list_id)
        item = storage.add_list_item(l.id, body.media_id, body.media_type, body.media_title, body.media_image)
        return jsonify(item.to_dict()), 201

    @app.route("/api/profile/lists/<list_id>/items/<item_id>", methods=["DELETE"])
    @login_required
    def list_item_remove(list_id, item_id):
        l = storage.get_owned_list(g.user_id, list_id)
        storage.remove_list_item(l.id, item_id)
        return jsonify({"ok": True})

    # ---------------- POSTS & FEED ----------------
    @app.route("/api/posts", methods=["POST"])
    @login_required
    def post_create():
        body = parse(PostRequest)

        if storage.find_post_by_user_and_media(g.user_id, body.media_id, body.media_type):
            raise Conflict("You already posted about this title")

        # a post is also the author's rating of the title
        p = storage.publish_post(
            g.user_id,
            media_id=body.media_id,
            media_type=body.media_type,
            media_title=body.media_title,
            rating=body.rating,
            comment=body.comment,
            media_image=body.media_image,
            is_favorite=body.is_favorite,
            first_time=body.first_time,
            has_spoilers=body.has_spoilers,
        )
        return jsonify(p.to_dict(author=storage.get_user(g.user_id))), 201

    @app.route("/api/posts")
    @login_required
    def posts_all():
        return jsonify(storage.get_all_posts())

    @app.route("/api/posts/feed")
    @login_required
    def posts_feed():
        return jsonify(storage.get_feed(g.user_id))

    @app.route("/api/profile/posts")
    @login_required
    def posts_mine():
        return jsonify(storage.get_user_posts(g.user_id))

    # ---------------- SOCIAL ----------------
    @app.route("/api/users/search")
    @login_required
    def users_search():
        q = search_query()
        if not q:
            return missing_query()
        return jsonify(storage.search_users(q))

    @app.route("/api/lists/search")
    @login_required
    def lists_search():
        q = search_query()
        if not q:
            return missing_query()
        return jsonify(storage.search_lists(q))

    @app.route("/api/users/<user_id>/profile")
    @login_required
    def user_profile(user_id):
        data = storage.get_public_profile(user_id)
        data.update({
            "followerCount": storage.get_follower_count(user_id),
            "followingCount": storage.get_following_count(user_id),
            "isFollowing": storage.is_following(g.user_id, user_id),
        })
        return jsonify(data)

    @app.route("/api/users/<user_id>/follow", methods=["POST"])
    @login_required
    def follow(user_id):
        storage.follow_user(g.user_id, user_id)
        return jsonify({"ok": True, "followerCount": storage.get_follower_count(user_id)})

    @app.route("/api/users/<user_id>/follow", methods=["DELETE"])
    @login_required
    def unfollow(user_id):
        storage.unfollow_user(g.user_id, user_id)
        return jsonify({"ok": True, "followerCount": storage.get_follower_count(user_id)})

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(debug=(os.getenv("FLASK_ENV") == "development"))
