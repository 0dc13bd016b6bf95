"""vCard 3.0 export of a profile, for "save contact" on the public page."""

SOCIAL_NETWORKS = ("linkedin", "twitter", "instagram", "facebook")


def _escape(value: str) -> str:
    return (
        value.replace("\\", "\\\\")
        .replace("\n", "\\n")
        .replace(",", "\\,")
        .replace(";", "\\;")
    )


def generate_vcard(profile: dict) -> str:
    """Build a vCard for a profile. Lines are CRLF-separated per RFC 2426."""
    lines = [
        "BEGIN:VCARD",
        "VERSION:3.0",
        f"FN:{_escape(profile.get('full_name') or profile.get('username') or '')}",
    ]

    if profile.get("title"):
        lines.append(f"TITLE:{_escape(profile['title'])}")
    if profile.get("phone"):
        lines.append(f"TEL;TYPE=CELL:{profile['phone']}")
    if profile.get("email"):
        lines.append(f"EMAIL:{profile['email']}")
    if profile.get("website"):
        lines.append(f"URL:{profile['website']}")
    if profile.get("bio"):
        lines.append(f"NOTE:{_escape(profile['bio'])}")

    social_links = profile.get("social_links") or {}
    for network in SOCIAL_NETWORKS:
        if social_links.get(network):
            lines.append(f"X-SOCIALPROFILE;TYPE={network}:{social_links[network]}")

    lines.append("END:VCARD")
    return "\r\n".join(lines)
