from itkit.util.text import estimated_read_time, is_valid_email, slugify, strip_tags, validate_registration


def test_slugify_collapses_punctuation_and_trims():
    assert slugify("How to Connect to VPN?") == "how-to-connect-to-vpn"
    assert slugify("  --Wi-Fi & Printers!! ") == "wi-fi-printers"
    assert slugify("!!!") == ""


def test_strip_tags():
    assert strip_tags("<p>Hello <b>world</b></p>") == "Hello world"
    assert strip_tags(None) == ""


def test_estimated_read_time_is_at_least_one_minute():
    assert estimated_read_time("") == 1
    assert estimated_read_time("<p>" + "word " * 200 + "</p>") == 1
    assert estimated_read_time("word " * 201) == 2


def test_email_validation():
    assert is_valid_email("alice@example.com")
    assert not is_valid_email("alice@example")
    assert not is_valid_email("alice example.com")
    assert not is_valid_email(None)


def test_validate_registration_reports_first_problem():
    assert validate_registration("bad", "secret1", "Al") == "Invalid email format"
    assert validate_registration("a@b.co", "12345", "Al") == "Password must be at least 6 characters long"
    assert validate_registration("a@b.co", "123456", " A ") == "Full name must be at least 2 characters long"
    assert validate_registration("a@b.co", "123456", "Al") is None
