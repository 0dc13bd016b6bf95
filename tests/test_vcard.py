from app.services.vcard import generate_vcard


def test_full_profile():
    vcard = generate_vcard({
        "username": "jane",
        "full_name": "Jane Doe",
        "title": "CEO, Obsi",
        "phone": "+33612345678",
        "email": "jane@obsi.app",
        "website": "https://obsi.app",
        "bio": "Line one\nLine two; more",
        "social_links": {"linkedin": "https://linkedin.com/in/jane", "github": "ignored"},
    })
    lines = vcard.split("\r\n")

    assert lines[0] == "BEGIN:VCARD"
    assert lines[1] == "VERSION:3.0"
    assert lines[-1] == "END:VCARD"
    assert "FN:Jane Doe" in lines
    assert "TITLE:CEO\\, Obsi" in lines
    assert "TEL;TYPE=CELL:+33612345678" in lines
    assert "EMAIL:jane@obsi.app" in lines
    assert "URL:https://obsi.app" in lines
    assert "NOTE:Line one\\nLine two\\; more" in lines
    assert "X-SOCIALPROFILE;TYPE=linkedin:https://linkedin.com/in/jane" in lines
    assert not any("github" in line for line in lines)


def test_empty_profile_falls_back_to_username():
    vcard = generate_vcard({"username": "jane"})
    assert vcard == "BEGIN:VCARD\r\nVERSION:3.0\r\nFN:jane\r\nEND:VCARD"
