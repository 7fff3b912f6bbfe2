"""Discord message payloads and HTML pages for the identity directory."""

from __future__ import annotations

from html import escape
from typing import Any, Dict, List, Mapping, Sequence

from memberlink.models.credentials import CredentialRecord
from memberlink.services.pagination import ListingPage

EPHEMERAL_FLAG = 1 << 6
EMBED_DESCRIPTION_LIMIT = 4096

LISTING_COLOR = 0x3498DB
ALTS_COLOR = 0xF1C40F
VERIFY_COLOR = 0x00B894

_BUTTON_PRIMARY = 1
_BUTTON_LINK = 5
_COMPONENT_ACTION_ROW = 1
_COMPONENT_BUTTON = 2


def ephemeral(content: str) -> Dict[str, Any]:
    return {"content": content, "flags": EPHEMERAL_FLAG}


def render_identity_line(record: CredentialRecord) -> str:
    return (
        f"• **{record.display_name}** | ID: `{record.id}` | IP: `{record.origin_address}`"
    )


def render_listing(listing: ListingPage) -> Dict[str, Any]:
    lines = [render_identity_line(record) for record in listing.records]
    embed = {
        "title": f"Verified Users - page {listing.page}/{listing.page_count}",
        "description": "\n".join(lines) if lines else "No users on this page.",
        "footer": {"text": f"Total verified: {listing.total}"},
        "color": LISTING_COLOR,
    }
    buttons = [
        {
            "type": _COMPONENT_BUTTON,
            "style": _BUTTON_PRIMARY,
            "label": "Previous",
            "custom_id": listing.previous_token,
            "disabled": not listing.has_previous,
        },
        {
            "type": _COMPONENT_BUTTON,
            "style": _BUTTON_PRIMARY,
            "label": "Next",
            "custom_id": listing.next_token,
            "disabled": not listing.has_next,
        },
    ]
    return {
        "embeds": [embed],
        "components": [{"type": _COMPONENT_ACTION_ROW, "components": buttons}],
    }


def render_expired_listing() -> Dict[str, Any]:
    return {"content": "This pagination has expired.", "embeds": [], "components": []}


def render_alt_groups(groups: Mapping[str, Sequence[CredentialRecord]]) -> Dict[str, Any]:
    lines: List[str] = []
    for origin, members in groups.items():
        lines.append(f"IP: `{origin}`")
        lines.extend(f"• **{member.display_name}** | ID: `{member.id}`" for member in members)
        lines.append("")
    embed = {
        "title": "Detected possible alts (shared IPs)",
        "description": "\n".join(lines)[:EMBED_DESCRIPTION_LIMIT],
        "color": ALTS_COLOR,
    }
    return {"embeds": [embed], "flags": EPHEMERAL_FLAG}


def render_verify_prompt(authorize_url: str) -> Dict[str, Any]:
    embed = {
        "title": "Verify Your Discord Account",
        "description": (
            "Click the button below to verify your account through Discord's "
            "official authorization window."
        ),
        "color": VERIFY_COLOR,
    }
    button = {
        "type": _COMPONENT_BUTTON,
        "style": _BUTTON_LINK,
        "label": "Verify Account",
        "url": authorize_url,
    }
    return {
        "embeds": [embed],
        "components": [{"type": _COMPONENT_ACTION_ROW, "components": [button]}],
    }


def render_verified_page(record: CredentialRecord) -> str:
    if record.avatar_ref:
        avatar = f"https://cdn.discordapp.com/avatars/{record.id}/{record.avatar_ref}.png"
    else:
        avatar = "https://cdn.discordapp.com/embed/avatars/0.png"
    name = escape(record.display_name)
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8" />
<meta name="viewport" content="width=device-width,initial-scale=1" />
<title>Verified Successfully</title>
</head>
<body>
  <main>
    <img class="avatar" src="{escape(avatar)}" alt="" width="110" height="110" />
    <h1>Verified Successfully!</h1>
    <p>Welcome, <strong>{name}</strong></p>
    <p>Your Discord account has been verified.</p>
    <a href="https://discord.com/app">Return to Discord</a>
  </main>
</body>
</html>"""


UPLOAD_FORM = """<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"/><title>Upload users.json</title></head>
<body>
<form method="POST" action="/upload" enctype="multipart/form-data">
  <h2>Replace users.json</h2>
  <label>Password: <input type="password" name="pass" required></label>
  <label>File: <input type="file" name="file" accept=".json" required></label>
  <button type="submit">Upload</button>
</form>
</body>
</html>"""


__all__ = [
    "EPHEMERAL_FLAG",
    "UPLOAD_FORM",
    "ephemeral",
    "render_alt_groups",
    "render_expired_listing",
    "render_identity_line",
    "render_listing",
    "render_verified_page",
    "render_verify_prompt",
]
