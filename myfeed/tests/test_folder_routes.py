"""
Tests for folder API routes.
"""

from conftest import OTHER_USER


class TestFolders:
    """Tests for folder CRUD."""

    def test_create_and_list(self, client):
        first = client.post("/folders", json={"name": "  Reading  "}).json()
        second = client.post("/folders", json={"name": "Work"}).json()

        assert first["name"] == "Reading"
        assert (first["position"], second["position"]) == (0, 1)
        assert [f["name"] for f in client.get("/folders").json()] == ["Reading", "Work"]

    def test_name_required(self, client):
        assert client.post("/folders", json={"name": ""}).status_code == 422

    def test_rename_and_reorder(self, client):
        folder = client.post("/folders", json={"name": "Reading"}).json()
        client.post("/folders", json={"name": "Work"})

        response = client.put(f"/folders/{folder['id']}", json={"name": "Later", "position": 9})
        assert response.status_code == 200
        assert response.json() == {"id": folder["id"], "name": "Later", "position": 9}
        assert [f["name"] for f in client.get("/folders").json()] == ["Work", "Later"]

    def test_update_missing(self, client):
        assert client.put("/folders/999", json={"name": "X"}).status_code == 404

    def test_delete_keeps_feeds(self, client_with_data):
        client, data = client_with_data
        folder = client.post("/folders", json={"name": "Reading"}).json()
        client.put(f"/feeds/{data['feed_id']}/folder", json={"folder_id": folder["id"]})

        assert client.delete(f"/folders/{folder['id']}").json() == {"success": True}
        feeds = client.get("/feeds").json()
        assert len(feeds) == 1
        assert feeds[0]["folder_id"] is None

    def test_folders_are_per_user(self, client):
        folder = client.post("/folders", json={"name": "Reading"}).json()
        headers = {"X-User-Id": OTHER_USER}
        assert client.get("/folders", headers=headers).json() == []
        assert client.delete(f"/folders/{folder['id']}", headers=headers).status_code == 404
