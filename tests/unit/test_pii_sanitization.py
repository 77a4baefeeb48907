"""Tests for markup sanitization and PII redaction."""
from contact_relay.core.sanitizer import redact_pii, sanitize_html, sanitize_text


class TestSanitizeText:
    def test_script_removed(self):
        result = sanitize_text('<script>alert("xss")</script>John')
        assert "<script>" not in result
        assert "John" in result

    def test_event_handler_removed(self):
        result = sanitize_text('Hello <img src="x" onerror="alert(1)"> world')
        assert "<img" not in result
        assert "onerror" not in result
        assert result == "Hello  world"

    def test_formatting_tags_removed(self):
        assert sanitize_text("<strong>bold</strong> and <em>italic</em>") == "bold and italic"

    def test_comments_removed(self):
        assert sanitize_text("before<!-- hidden -->after") == "beforeafter"

    def test_ampersand_escaped(self):
        assert sanitize_text("Tom & Jerry") == "Tom &amp; Jerry"

    def test_plain_text_unchanged(self):
        assert sanitize_text("Just a normal message") == "Just a normal message"

    def test_idempotent(self):
        for value in [
            "Tom & Jerry",
            "<b>hi</b> there",
            "1 < 2 and 3 > 2",
            '<a href="javascript:alert(1)">link</a>',
        ]:
            once = sanitize_text(value)
            assert sanitize_text(once) == once


class TestSanitizeHtml:
    def test_keeps_formatting_tags(self):
        result = sanitize_html("<p>Hello <strong>there</strong></p>")
        assert result == "<p>Hello <strong>there</strong></p>"

    def test_removes_attributes(self):
        result = sanitize_html('<p class="x" onclick="evil()">Hi</p>')
        assert result == "<p>Hi</p>"

    def test_removes_disallowed_tags(self):
        result = sanitize_html("<p>ok</p><script>bad()</script><iframe></iframe>")
        assert "<script>" not in result
        assert "<iframe>" not in result
        assert result.startswith("<p>ok</p>")

    def test_idempotent(self):
        once = sanitize_html('<p>A &amp; B <em onmouseover="x()">c</em></p>')
        assert sanitize_html(once) == once


class TestRedactPii:
    def test_email_redacted(self):
        assert "user@example.com" not in redact_pii("Contact user@example.com for info")
        assert "u***@example.com" in redact_pii("Contact user@example.com for info")

    def test_ipv4_redacted(self):
        result = redact_pii("Client IP: 192.168.1.100")
        assert "192.168.1.100" not in result
        assert "192.168.1.***" in result

    def test_token_redacted(self):
        key = "a" * 32
        result = redact_pii(f"Key: {key}")
        assert key not in result
        assert "[TOKEN_REDACTED]" in result

    def test_request_id_kept(self):
        request_id = "3f2b8c1e-4d5a-4b6c-9e7f-1a2b3c4d5e6f"
        assert redact_pii(f"Request {request_id}") == f"Request {request_id}"

    def test_password_redacted(self):
        result = redact_pii("password=supersecret123")
        assert "supersecret123" not in result
        assert "[REDACTED]" in result

    def test_non_string_coerced(self):
        assert redact_pii(42) == "42"

    def test_no_pii_unchanged(self):
        msg = "Contact form submitted successfully"
        assert redact_pii(msg) == msg
