"""Tests for challengekit.services.templates.TemplateRenderer."""
from challengekit.services.templates import (
    LOST_PASSWORD_TEMPLATE, VERIFICATION_TEMPLATE, TemplateRenderer,
)


def test_verification_template():
    subject, body = TemplateRenderer().render(VERIFICATION_TEMPLATE, {
        "registered_website": "Example Site",
        "contact_email": "help@example.com",
        "challenge_url": "https://example.com/verify?token=abc",
        "user_name": "Alice",
        "expires_in": "7 days",
    })

    assert subject == "Verification E-Mail"
    assert body.count('href="https://example.com/verify?token=abc"') == 2
    assert "Hi Alice," in body
    assert "Verify your Example Site account" in body
    assert "7 days" in body


def test_lost_password_template():
    subject, body = TemplateRenderer().render(LOST_PASSWORD_TEMPLATE, {
        "username": "alice",
        "user_name": "",
        "lost_password_url": "https://example.com/reset?token=xyz",
        "expires_in": "1 day",
    })

    assert subject == "Lost password"
    assert "https://example.com/reset?token=xyz" in body
    assert "Hi," in body
    assert "<strong>alice</strong>" in body


def test_values_are_escaped():
    _, body = TemplateRenderer().render(LOST_PASSWORD_TEMPLATE, {
        "username": "<script>",
        "user_name": "",
        "lost_password_url": "https://example.com/reset?token=xyz",
        "expires_in": "1 day",
    })
    assert "<script>" not in body
    assert "&lt;script&gt;" in body


def test_override_directory_wins(tmp_path):
    (tmp_path / "user_lost_password_subject.txt").write_text("Reset for {{ username }}", encoding="utf-8")

    subject, body = TemplateRenderer(templates_path=str(tmp_path)).render(LOST_PASSWORD_TEMPLATE, {
        "username": "alice",
        "lost_password_url": "https://example.com/reset?token=xyz",
        "expires_in": "1 day",
    })

    assert subject == "Reset for alice"
    # Body falls back to the packaged template
    assert "https://example.com/reset?token=xyz" in body
