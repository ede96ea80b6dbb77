"""Tests for billing payload normalization."""

import pytest

from portal.billing.normalize import (
    normalize_client,
    normalize_date,
    normalize_project,
    to_minor_units,
    to_remote_payload,
)


class TestNormalizeProject:

    def test_snake_and_camel_case_agree(self):
        snake = normalize_project({"id": 1, "title": "A", "due_date": "2025-01-01", "fixed_price": "10.00", "client_id": 5})
        camel = normalize_project({"id": 1, "title": "A", "dueDate": "2025-01-01", "fixedPrice": "10.00", "clientId": 5})
        assert snake == camel
        assert snake.id == "1"
        assert snake.client_id == "5"
        assert snake.fixed_price == 1000

    def test_fixed_price_boolean_flag(self):
        project = normalize_project({"id": 1, "fixed_price": True})
        assert project.is_fixed_price is True
        assert project.fixed_price is None

        project = normalize_project({"id": 1, "fixed_price": False})
        assert project.is_fixed_price is False

    def test_project_type_marks_fixed_price(self):
        assert normalize_project({"id": 1, "project_type": "fixed_price"}).is_fixed_price is True

    def test_status_derived_from_flags(self):
        assert normalize_project({"id": 1, "complete": True}).status == "completed"
        assert normalize_project({"id": 1, "active": False}).status == "inactive"
        assert normalize_project({"id": 1}).status == "active"
        assert normalize_project({"id": 1, "status": "on hold", "complete": True}).status == "on hold"

    def test_defaults(self):
        project = normalize_project({"id": "x"})
        assert project.title == "Untitled Project"
        assert project.description == ""
        assert project.visible is True
        assert project.progress is None

    def test_internal_projects_are_hidden(self):
        assert normalize_project({"id": 1, "internal": True}).visible is False

    def test_progress_is_clamped(self):
        assert normalize_project({"id": 1, "progress": "140"}).progress == 100

    def test_legacy_id_keys(self):
        assert normalize_project({"freshbooksId": "fb-7"}).id == "fb-7"

    def test_missing_id(self):
        with pytest.raises(ValueError):
            normalize_project({"title": "No id"})

    def test_bad_amount(self):
        with pytest.raises(ValueError):
            normalize_project({"id": 1, "fixed_price": "lots"})

    def test_view_fields_omit_unknown_progress(self):
        fields = normalize_project({"id": 1, "budget": 300}).view_fields()
        assert fields == {"due_date": None, "budget": 300, "fixed_price": None, "visible": True}


class TestScalars:

    def test_dates(self):
        assert normalize_date("2025-01-01") == "2025-01-01"
        assert normalize_date("2025-01-01T12:30:00Z") == "2025-01-01"
        assert normalize_date(1735689600) == "2025-01-01"
        assert normalize_date(1735689600000) == "2025-01-01"
        assert normalize_date("") is None
        assert normalize_date(None) is None

    def test_bad_date(self):
        with pytest.raises(ValueError):
            normalize_date("next tuesday")

    def test_minor_units(self):
        assert to_minor_units("1,500.50") == 150050
        assert to_minor_units(12) == 1200
        assert to_minor_units(None) is None


class TestRemotePayload:

    def test_translates_canonical_fields(self):
        payload = to_remote_payload({"title": "New", "fixed_price": 450050, "visible": False, "progress": 40})
        assert payload == {"project": {"title": "New", "fixed_price": "4500.50", "internal": True}}


class TestNormalizeClient:

    def test_fields(self):
        client = normalize_client({"id": 3, "email": "a@b.c", "organization": "Acme", "phone": "555", "vis_state": 2})
        assert client.id == "3"
        assert client.organization == "Acme"
        assert client.phone_number == "555"
        assert client.status == "archived"

    def test_default_status(self):
        assert normalize_client({"id": 3}).status == "active"
