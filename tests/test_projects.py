"""Tests for the project API routes."""


class TestProjectRoutes:
    """Test project creation and listing."""

    def test_create_project(self, client, auth_headers, registered_user):
        response = client.post(
            "/api/projects",
            json={"name": "Website", "description": "Marketing site"},
            headers=auth_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Project created successfully"
        assert data["project"]["name"] == "Website"
        assert data["project"]["description"] == "Marketing site"
        assert data["project"]["ownerId"] == registered_user["user"]["id"]

    def test_create_project_requires_token(self, client):
        response = client.post("/api/projects", json={"name": "Website"})

        assert response.status_code == 401

    def test_create_project_validation_error(self, client, auth_headers):
        response = client.post("/api/projects", json={"name": ""}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "name"

    def test_list_projects(self, client, auth_headers):
        client.post("/api/projects", json={"name": "First"}, headers=auth_headers)
        client.post("/api/projects", json={"name": "Second"}, headers=auth_headers)

        response = client.get("/api/projects", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        assert [p["name"] for p in data["projects"]] == ["Second", "First"]
