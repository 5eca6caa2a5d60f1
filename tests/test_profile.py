def rating_body(**overrides):
    body = {
        "mediaId": "550",
        "mediaType": "film",
        "mediaTitle": "Fight Club",
        "rating": 4,
    }
    body.update(overrides)
    return body


# ---------------- PROFILE ----------------
def test_profile_overview(client, signup):
    user, headers = signup("ana")
    res = client.get("/api/profile", headers=headers)
    assert res.status_code == 200
    data = res.get_json()
    assert data["user"]["id"] == user["id"]
    assert data["favorites"] == []
    assert data["lists"] == []
    assert data["followerCount"] == 0
    assert [d["stars"] for d in data["stats"]["distribution"]] == [5, 4, 3, 2, 1]


def test_update_profile(client, signup):
    _, headers = signup("ana")
    res = client.put("/api/profile/update", headers=headers, json={
        "name": "Ana Souza",
        "email": "souza@example.com",
        "bio": "Film enthusiast",
        "avatarUrl": "https://img.example/a.png",
    })
    assert res.status_code == 200
    user = res.get_json()["user"]
    assert user["name"] == "Ana Souza"
    assert user["email"] == "souza@example.com"
    assert user["avatarUrl"] == "https://img.example/a.png"


def test_update_profile_email_taken(client, signup):
    signup("bia")
    _, headers = signup("ana")
    res = client.put("/api/profile/update", headers=headers, json={
        "name": "Ana", "email": "bia@example.com",
    })
    assert res.status_code == 409


def test_update_bio(client, signup):
    _, headers = signup("ana")
    res = client.put("/api/profile/bio", headers=headers, json={"bio": "music lover"})
    assert res.get_json()["user"]["bio"] == "music lover"


def test_change_password(client, signup):
    _, headers = signup("ana")
    res = client.put("/api/profile/password", headers=headers, json={
        "currentPassword": "wrong", "newPassword": "newsecret",
    })
    assert res.status_code == 400

    res = client.put("/api/profile/password", headers=headers, json={
        "currentPassword": "secret123", "newPassword": "123",
    })
    assert res.status_code == 400

    res = client.put("/api/profile/password", headers=headers, json={
        "currentPassword": "secret123", "newPassword": "newsecret",
    })
    assert res.status_code == 200
    res = client.post("/api/auth/login", json={"email": "ana", "password": "newsecret"})
    assert res.status_code == 200


def test_delete_account(client, signup):
    _, headers = signup("ana")
    client.post("/api/profile/ratings", headers=headers, json=rating_body())
    client.post("/api/profile/lists", headers=headers, json={"name": "Watchlist"})

    res = client.delete("/api/profile/account", headers=headers, json={"password": "bad"})
    assert res.status_code == 400

    res = client.delete("/api/profile/account", headers=headers, json={"password": "secret123"})
    assert res.status_code == 200
    assert client.get("/api/auth/me", headers=headers).status_code == 401
    res = client.post("/api/auth/login", json={"email": "ana", "password": "secret123"})
    assert res.status_code == 401


# ---------------- FAVORITES ----------------
def test_favorite_is_one_per_category(client, signup):
    _, headers = signup("ana")
    client.put("/api/profile/favorites", headers=headers, json={"category": "film", "title": "Alien"})
    res = client.put("/api/profile/favorites", headers=headers, json={
        "category": "film", "title": "Aliens", "mediaId": "679",
    })
    assert res.status_code == 200
    client.put("/api/profile/favorites", headers=headers, json={"category": "book", "title": "Dune"})

    favs = client.get("/api/profile/favorites", headers=headers).get_json()
    by_cat = {f["category"]: f for f in favs}
    assert len(favs) == 2
    assert by_cat["film"]["title"] == "Aliens"
    assert by_cat["film"]["mediaId"] == "679"
    assert by_cat["book"]["mediaImage"] is None


def test_favorite_rejects_unknown_category(client, signup):
    _, headers = signup("ana")
    res = client.put("/api/profile/favorites", headers=headers, json={"category": "podcast", "title": "X"})
    assert res.status_code == 400


def test_delete_favorite(client, signup):
    _, headers = signup("ana")
    client.put("/api/profile/favorites", headers=headers, json={"category": "music", "title": "Abbey Road"})
    assert client.delete("/api/profile/favorites/music", headers=headers).status_code == 200
    assert client.get("/api/profile/favorites", headers=headers).get_json() == []


# ---------------- RATINGS ----------------
def test_rating_upsert(client, signup):
    _, headers = signup("ana")
    first = client.post("/api/profile/ratings", headers=headers, json=rating_body(comment="great")).get_json()
    second = client.post("/api/profile/ratings", headers=headers, json=rating_body(rating=5)).get_json()

    assert first["id"] == second["id"]
    assert second["rating"] == 5
    assert second["comment"] == ""

    ratings = client.get("/api/profile/ratings", headers=headers).get_json()
    assert len(ratings) == 1


def test_same_media_id_different_type_is_separate(client, signup):
    _, headers = signup("ana")
    client.post("/api/profile/ratings", headers=headers, json=rating_body())
    client.post("/api/profile/ratings", headers=headers, json=rating_body(mediaType="series"))
    assert len(client.get("/api/profile/ratings", headers=headers).get_json()) == 2


def test_rating_bounds(client, signup):
    _, headers = signup("ana")
    for value in (0, 6, 4.5):
        res = client.post("/api/profile/ratings", headers=headers, json=rating_body(rating=value))
        assert res.status_code == 400


def test_delete_rating(client, signup):
    _, headers = signup("ana")
    client.post("/api/profile/ratings", headers=headers, json=rating_body())
    assert client.delete("/api/profile/ratings/film/550", headers=headers).status_code == 200
    assert client.get("/api/profile/ratings", headers=headers).get_json() == []


def test_rating_stats(client, signup):
    _, headers = signup("ana")
    client.post("/api/profile/ratings", headers=headers, json=rating_body(mediaId="1", rating=5))
    client.post("/api/profile/ratings", headers=headers, json=rating_body(mediaId="2", rating=5))
    client.post("/api/profile/ratings", headers=headers, json=rating_body(
        mediaId="3", mediaType="book", rating=2,
    ))

    stats = client.get("/api/profile/stats", headers=headers).get_json()
    assert stats["distribution"] == [
        {"stars": 5, "count": 2},
        {"stars": 4, "count": 0},
        {"stars": 3, "count": 0},
        {"stars": 2, "count": 1},
        {"stars": 1, "count": 0},
    ]
    cats = {c["category"]: c["count"] for c in stats["categoryStats"]}
    assert cats == {"film": 2, "book": 1}


# ---------------- LISTS ----------------
def test_list_lifecycle(client, signup):
    _, headers = signup("ana")
    res = client.post("/api/profile/lists", headers=headers, json={"name": "Best of 2024"})
    assert res.status_code == 201
    list_id = res.get_json()["id"]

    res = client.post(f"/api/profile/lists/{list_id}/items", headers=headers, json={
        "mediaId": "550", "mediaType": "film", "mediaTitle": "Fight Club",
    })
    assert res.status_code == 201
    item_id = res.get_json()["id"]

    lists = client.get("/api/profile/lists", headers=headers).get_json()
    assert lists[0]["itemCount"] == 1

    res = client.patch(f"/api/profile/lists/{list_id}", headers=headers, json={"description": "my notes"})
    assert res.get_json()["list"]["description"] == "my notes"
    assert res.get_json()["list"]["name"] == "Best of 2024"

    detail = client.get(f"/api/profile/lists/{list_id}", headers=headers).get_json()
    assert detail["list"]["description"] == "my notes"
    assert [i["id"] for i in detail["items"]] == [item_id]

    res = client.delete(f"/api/profile/lists/{list_id}/items/{item_id}", headers=headers)
    assert res.status_code == 200
    assert client.get(f"/api/profile/lists/{list_id}", headers=headers).get_json()["items"] == []

    assert client.delete(f"/api/profile/lists/{list_id}", headers=headers).status_code == 200
    assert client.get(f"/api/profile/lists/{list_id}", headers=headers).status_code == 404


def test_empty_patch_leaves_list_unchanged(client, signup):
    _, headers = signup("ana")
    list_id = client.post("/api/profile/lists", headers=headers, json={"name": "Keep"}).get_json()["id"]
    res = client.patch(f"/api/profile/lists/{list_id}", headers=headers, json={})
    assert res.status_code == 200
    assert res.get_json()["list"]["name"] == "Keep"


def test_lists_are_private_to_owner(client, signup):
    _, ana = signup("ana")
    _, bia = signup("bia")
    list_id = client.post("/api/profile/lists", headers=ana, json={"name": "Mine"}).get_json()["id"]

    assert client.get(f"/api/profile/lists/{list_id}", headers=bia).status_code == 404
    assert client.patch(f"/api/profile/lists/{list_id}", headers=bia, json={"name": "x"}).status_code == 404
    assert client.delete(f"/api/profile/lists/{list_id}", headers=bia).status_code == 404
    res = client.post(f"/api/profile/lists/{list_id}/items", headers=bia, json={
        "mediaId": "1", "mediaType": "film", "mediaTitle": "X",
    })
    assert res.status_code == 404


def test_remove_item_from_wrong_list(client, signup):
    _, headers = signup("ana")
    a = client.post("/api/profile/lists", headers=headers, json={"name": "A"}).get_json()["id"]
    b = client.post("/api/profile/lists", headers=headers, json={"name": "B"}).get_json()["id"]
    item_id = client.post(f"/api/profile/lists/{a}/items", headers=headers, json={
        "mediaId": "1", "mediaType": "film", "mediaTitle": "X",
    }).get_json()["id"]

    assert client.delete(f"/api/profile/lists/{b}/items/{item_id}", headers=headers).status_code == 404
