"""API tests for project notes."""

from portal.models.user import UserRole
from tests.conftest import auth_headers, make_user


def notes_url(project_id, note_id=None):
    url = f"/api/v1/projects/{project_id}/notes"
    return f"{url}/{note_id}" if note_id is not None else url


def test_create_and_list(client, customer, local_project):
    headers = auth_headers(customer)
    response = client.post(notes_url(local_project.id), json={"content": "Kickoff done"}, headers=headers)
    assert response.status_code == 201
    assert response.json()["user_id"] == customer.id

    listed = client.get(notes_url(local_project.id), headers=headers).json()
    assert [note["content"] for note in listed] == ["Kickoff done"]


def test_notes_on_remote_identifier(client, admin, billing):
    response = client.post(notes_url("9001"), json={"content": "Mirrored on first use"}, headers=auth_headers(admin))
    assert response.status_code == 201
    assert billing.fetches == ["9001"]


def test_empty_note_rejected(client, customer, local_project):
    response = client.post(notes_url(local_project.id), json={"content": ""}, headers=auth_headers(customer))
    assert response.status_code == 422


def test_creator_edits(client, customer, local_project):
    headers = auth_headers(customer)
    note_id = client.post(notes_url(local_project.id), json={"content": "Draft"}, headers=headers).json()["id"]

    response = client.patch(notes_url(local_project.id, note_id), json={"content": "Final"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["content"] == "Final"
    assert response.json()["updated_at"]


def test_admin_deletes_any_note(client, admin, customer, local_project):
    note_id = client.post(notes_url(local_project.id), json={"content": "Draft"}, headers=auth_headers(customer)).json()["id"]

    response = client.delete(notes_url(local_project.id, note_id), headers=auth_headers(admin))
    assert response.status_code == 200
    assert client.get(notes_url(local_project.id), headers=auth_headers(customer)).json() == []


def test_only_creator_or_admin_may_edit(client, db, admin, customer, local_project):
    note_id = client.post(notes_url(local_project.id), json={"content": "Admin note"}, headers=auth_headers(admin)).json()["id"]

    response = client.patch(notes_url(local_project.id, note_id), json={"content": "Changed"}, headers=auth_headers(customer))
    assert response.status_code == 403


def test_note_from_another_project(client, db, admin, local_project):
    from portal.models.project import Project

    other = Project(title="Other")
    db.add(other)
    db.commit()
    db.refresh(other)
    note_id = client.post(notes_url(other.id), json={"content": "Elsewhere"}, headers=auth_headers(admin)).json()["id"]

    response = client.delete(notes_url(local_project.id, note_id), headers=auth_headers(admin))
    assert response.status_code == 404


def test_other_customer_cannot_read(client, db, local_project):
    outsider = make_user(db, "outsider@example.com", UserRole.CUSTOMER)
    assert client.get(notes_url(local_project.id), headers=auth_headers(outsider)).status_code == 403
