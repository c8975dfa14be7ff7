"""
HTTP tests for posting, reports, notifications and the wiki.
"""

from fastapi.testclient import TestClient

import repositories.db_models as db_models


class TestFollowedUserNotifications:
    def test_follower_is_notified_and_author_is_not(
        self, client: TestClient, test_user, other_user, test_topic, auth_headers, other_auth_headers
    ):
        followed = client.post(
            f"/api/follows/users/{test_user.id}", headers=other_auth_headers
        )
        assert followed.status_code == 200
        assert followed.json()["following"] is True

        posted = client.post(
            f"/api/topics/{test_topic.id}/posts",
            json={"content": "News from the author"},
            headers=auth_headers,
        )
        assert posted.status_code == 201

        inbox = client.get("/api/notifications", headers=other_auth_headers).json()
        assert [n["type"] for n in inbox] == ["followed_user_post"]
        assert inbox[0]["payload"]["topicId"] == test_topic.id

        assert client.get("/api/notifications", headers=auth_headers).json() == []

    def test_mark_read(
        self, client: TestClient, db_session, other_user, auth_headers, other_auth_headers, test_topic
    ):
        db_session.add(
            db_models.TopicFollow(user_id=other_user.id, topic_id=test_topic.id)
        )
        db_session.commit()
        client.post(
            f"/api/topics/{test_topic.id}/posts",
            json={"content": "First reply"},
            headers=auth_headers,
        )

        unread = client.get("/api/notifications/unread-count", headers=other_auth_headers)
        assert unread.json() == {"count": 1}

        marked = client.post(
            "/api/notifications/read", json={"ids": []}, headers=other_auth_headers
        )
        assert marked.json() == {"count": 1}
        unread = client.get("/api/notifications/unread-count", headers=other_auth_headers)
        assert unread.json() == {"count": 0}

    def test_mark_read_rejects_garbage_ids(self, client: TestClient, auth_headers):
        response = client.post(
            "/api/notifications/read", json={"ids": ["x", -3]}, headers=auth_headers
        )
        assert response.status_code == 400


class TestPostsApi:
    def test_locked_topic(
        self, client: TestClient, db_session, test_topic, other_auth_headers
    ):
        test_topic.is_locked = True
        db_session.commit()
        response = client.post(
            f"/api/topics/{test_topic.id}/posts",
            json={"content": "Too late"},
            headers=other_auth_headers,
        )
        assert response.status_code == 403

    def test_unknown_topic(self, client: TestClient, auth_headers):
        response = client.post(
            "/api/topics/999/posts", json={"content": "Hello"}, headers=auth_headers
        )
        assert response.status_code == 404

    def test_anonymous_cannot_post(self, client: TestClient, test_topic):
        response = client.post(
            f"/api/topics/{test_topic.id}/posts", json={"content": "Hello"}
        )
        assert response.status_code == 401


class TestReportsApi:
    def test_report_post(
        self, client: TestClient, test_user, test_post, other_auth_headers
    ):
        response = client.post(
            "/api/reports",
            json={"post_id": test_post.id, "reason": "Off-topic spam"},
            headers=other_auth_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["target_user_id"] == test_user.id
        assert data["status"] == "open"

    def test_short_reason(self, client: TestClient, test_user, other_auth_headers):
        response = client.post(
            "/api/reports",
            json={"user_id": test_user.id, "reason": "no"},
            headers=other_auth_headers,
        )
        assert response.status_code == 400

    def test_queue_requires_staff(self, client: TestClient, auth_headers):
        assert client.get("/api/reports", headers=auth_headers).status_code == 403


class TestWikiApi:
    def test_draft_hidden_from_anonymous(
        self, client: TestClient, admin_auth_headers
    ):
        created = client.post(
            "/api/wiki/articles",
            json={"title": "Secret Plans", "content": "[]"},
            headers=admin_auth_headers,
        )
        assert created.status_code == 201
        slug = created.json()["slug"]

        assert client.get(f"/api/wiki/articles/{slug}").status_code == 404
        visible = client.get(f"/api/wiki/articles/{slug}", headers=admin_auth_headers)
        assert visible.status_code == 200


class TestUserActivityApi:
    def test_lists_posts(self, client: TestClient, test_user, test_topic):
        response = client.get(f"/api/users/{test_user.id}/activity")
        assert response.status_code == 200
        data = response.json()
        assert [item["type"] for item in data] == ["post"]
        assert data[0]["content"] == "Opening post"

    def test_unknown_user(self, client: TestClient):
        assert client.get("/api/users/999/activity").status_code == 404
