"""
Site-wide settings: a single document replaced wholesale on every save.
"""

import json

import main
import storage


def config_form(**overrides):
    form = {
        "socialMediaLinks": json.dumps({"instagram": "https://instagram.com/club", "github": "https://github.com/club"}),
        "milestones": json.dumps([{"title": "Users", "value": "100+"}]),
        "officeDetails": json.dumps({"address": "12 Lake Rd", "contactNumber": "555-0100", "email": "hi@example.com"}),
        "logoName": "Club",
    }
    form.update(overrides)
    return {k: v for k, v in form.items() if v is not None}


class TestSaveSystemData:
    def test_first_save_creates(self, client, mongo):
        response = client.post("/system-data", data=config_form())

        assert response.status_code == 201
        assert response.json() == {"message": "System data created"}
        assert mongo["systemdata"].count_documents({}) == 1

    def test_second_save_replaces_in_place(self, client, mongo):
        client.post("/system-data", data=config_form())

        response = client.post("/system-data", data=config_form(milestones=None, logoName="Renamed"))

        assert response.status_code == 200
        assert response.json() == {"message": "System data updated"}
        assert mongo["systemdata"].count_documents({}) == 1
        stored = mongo["systemdata"].find_one()
        assert stored["milestones"] == []
        assert stored["logo"]["name"] == "Renamed"

    def test_replace_keeps_created_at(self, client, mongo):
        client.post("/system-data", data=config_form())
        created_at = mongo["systemdata"].find_one()["createdAt"]

        client.post("/system-data", data=config_form())

        stored = mongo["systemdata"].find_one()
        assert stored["createdAt"] == created_at
        assert stored["updatedAt"] >= created_at

    def test_uploads_logo_and_video(self, client, png, upload_dir):
        files = {"logo": png("logo.png"), "video": ("promo.mp4", b"mp4 bytes", "video/mp4")}

        client.post("/system-data", data=config_form(), files=files)

        data = client.get("/system-data").json()
        assert data["logo"]["imagePath"].startswith("uploads/")
        assert data["logo"]["imagePath"].endswith("-logo.png")
        assert data["promoVideoPath"].endswith("-promo.mp4")
        assert (upload_dir / data["promoVideoPath"].split("/")[-1]).exists()

    def test_save_without_logo_clears_previous_path(self, client, png):
        client.post("/system-data", data=config_form(), files={"logo": png("logo.png")})

        client.post("/system-data", data=config_form())

        data = client.get("/system-data").json()
        assert data["logo"]["imagePath"] == ""
        assert data["promoVideoPath"] == ""

    def test_oversized_video_removes_stored_logo(self, client, png, upload_dir, mongo, monkeypatch):
        monkeypatch.setattr(storage, "MAX_UPLOAD_BYTES", 8)
        files = {"logo": png("logo.png", b"tiny"), "video": ("promo.mp4", b"x" * 64, "video/mp4")}

        response = client.post("/system-data", data=config_form(), files=files)

        assert response.status_code == 413
        assert list(upload_dir.iterdir()) == []
        assert mongo["systemdata"].count_documents({}) == 0

    def test_store_failure_removes_uploads(self, client, png, upload_dir, monkeypatch):
        def fail(*args, **kwargs):
            raise RuntimeError("store unavailable")
        monkeypatch.setattr(main, "create_document", fail)

        response = client.post("/system-data", data=config_form(), files={"logo": png("logo.png")})

        assert response.status_code == 500
        assert list(upload_dir.iterdir()) == []

    def test_malformed_json_is_rejected(self, client, mongo):
        response = client.post("/system-data", data=config_form(milestones="[{not json"))

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid system data"
        assert response.json()["errors"]
        assert mongo["systemdata"].count_documents({}) == 0

    def test_wrong_shape_is_rejected(self, client):
        response = client.post("/system-data", data=config_form(milestones=json.dumps([{"title": "Users"}])))

        assert response.status_code == 400


class TestGetSystemData:
    def test_returns_null_before_first_save(self, client):
        response = client.get("/system-data")

        assert response.status_code == 200
        assert response.json() is None

    def test_returns_saved_document(self, client):
        client.post("/system-data", data=config_form())

        data = client.get("/system-data").json()

        assert data["socialMediaLinks"]["instagram"] == "https://instagram.com/club"
        assert data["socialMediaLinks"]["x"] is None
        assert data["milestones"] == [{"title": "Users", "value": "100+"}]
        assert data["officeDetails"]["contactNumber"] == "555-0100"
        assert data["_id"]
