"""Tests for client and project input validation."""

import pytest

from timeflow.core.validation import validate_client, validate_project


class TestValidateClient:
    """Test client form validation."""

    def test_valid_client(self) -> None:
        result = validate_client(
            {
                "name": "Acme Corp",
                "company": "Acme Corp",
                "contact": {"email": "hello@acme.com", "website": "https://acme.com"},
            }
        )

        assert result.ok
        assert result.errors == {}
        assert result.value is not None
        assert result.value["contact"]["email"] == "hello@acme.com"
        assert result.value["notes"] is None

    def test_all_errors_reported_together(self) -> None:
        """Test a short name and a bad email are both reported."""
        result = validate_client({"name": "A", "contact": {"email": "nope"}})

        assert not result.ok
        assert result.value is None
        assert result.errors == {
            "name": "Name must be at least 2 characters",
            "contact.email": "Invalid email",
        }

    def test_invalid_website(self) -> None:
        result = validate_client({"name": "Acme", "contact": {"website": "acme dot com"}})
        assert result.errors == {"contact.website": "Invalid URL"}

    def test_blank_optional_fields_are_unset(self) -> None:
        """Test empty strings from a form count as missing values."""
        result = validate_client(
            {"name": "Acme", "company": "  ", "contact": {"email": "", "website": ""}}
        )

        assert result.ok
        assert result.value is not None
        assert result.value["company"] is None
        assert result.value["contact"] == {"email": None, "phone": None, "website": None}

    def test_missing_name(self) -> None:
        result = validate_client({})
        assert list(result.errors) == ["name"]

    def test_unknown_fields_are_dropped(self) -> None:
        result = validate_client({"name": "Acme", "color": "red"})

        assert result.ok
        assert result.value is not None
        assert "color" not in result.value


class TestValidateProject:
    """Test project form validation."""

    def test_valid_project(self) -> None:
        result = validate_project(
            {"name": "Website", "status": "archived", "rate_per_hour": "95.5", "tags": ["web"]}
        )

        assert result.ok
        assert result.value is not None
        assert result.value["rate_per_hour"] == 95.5
        assert result.value["status"] == "archived"
        assert result.value["client_id"] is None

    def test_defaults(self) -> None:
        result = validate_project({"name": "Website"})

        assert result.value is not None
        assert result.value["status"] == "active"
        assert result.value["tags"] == []
        assert result.value["rate_per_hour"] is None

    @pytest.mark.parametrize("rate", [0, "0", 12.5])
    def test_non_negative_rates_accepted(self, rate: object) -> None:
        assert validate_project({"name": "Website", "rate_per_hour": rate}).ok

    def test_negative_rate(self) -> None:
        result = validate_project({"name": "Website", "rate_per_hour": -1})
        assert result.errors == {"rate_per_hour": "Rate must be 0 or greater"}

    @pytest.mark.parametrize("rate", ["nan", "inf", "-inf", float("nan"), float("inf")])
    def test_non_finite_rate(self, rate: object) -> None:
        """Test NaN and infinite rates are rejected, not stored."""
        result = validate_project({"name": "Website", "rate_per_hour": rate})

        assert not result.ok
        assert "rate_per_hour" in result.errors

    def test_non_numeric_rate(self) -> None:
        result = validate_project({"name": "Website", "rate_per_hour": "lots"})
        assert "rate_per_hour" in result.errors

    def test_unknown_status(self) -> None:
        result = validate_project({"name": "Website", "status": "deleted"})
        assert "status" in result.errors

    def test_blank_rate_is_unset(self) -> None:
        result = validate_project({"name": "Website", "rate_per_hour": ""})

        assert result.ok
        assert result.value is not None
        assert result.value["rate_per_hour"] is None

    def test_short_name(self) -> None:
        result = validate_project({"name": "W"})
        assert result.errors == {"name": "Name must be at least 2 characters"}
