"""ABOUTME: End-to-end tests for choosing the interface language
ABOUTME: Covers the ?lang= switch, the remembered choice and the browser's Accept-Language header"""

import pytest
from flask import session

from accountdesk.entrypoints.extensions import get_locale


@pytest.fixture
def welsh_app(app):
    app.config["LANGUAGES"] = ["en", "cy"]
    return app


class TestGetLocale:
    def test_defaults_to_first_supported_language(self, welsh_app):
        with welsh_app.test_request_context("/"):
            assert get_locale() == "en"

    def test_lang_parameter_is_remembered_in_session(self, welsh_app):
        with welsh_app.test_request_context("/?lang=cy"):
            assert get_locale() == "cy"
            assert session["language"] == "cy"

    def test_unsupported_lang_parameter_is_ignored(self, welsh_app):
        with welsh_app.test_request_context("/?lang=xx"):
            assert get_locale() == "en"
            assert "language" not in session

    def test_session_choice_beats_browser_preference(self, welsh_app):
        with welsh_app.test_request_context("/", headers={"Accept-Language": "en"}):
            session["language"] = "cy"
            assert get_locale() == "cy"

    def test_accept_language_header(self, welsh_app):
        with welsh_app.test_request_context("/", headers={"Accept-Language": "cy, en;q=0.5"}):
            assert get_locale() == "cy"

    def test_outside_a_request_uses_default_locale(self, welsh_app):
        with welsh_app.app_context():
            assert get_locale() == "en"


class TestLanguageSwitch:
    def test_lang_parameter_is_kept_for_later_requests(self, client, welsh_app):
        response = client.get("/?lang=cy")

        assert response.status_code == 200
        with client.session_transaction() as stored:
            assert stored["language"] == "cy"
