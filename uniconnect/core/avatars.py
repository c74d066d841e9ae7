from urllib.parse import quote

DICEBEAR_STYLE_URL = "https://api.dicebear.com/7.x/notionists/svg"
AVATAR_BACKGROUNDS = "b6e3f4,c0aede,d1d4f9,ffd5dc,ffdfbf,3b82f6,2563eb"

# Seeds offered by the signup form
AVATAR_SEEDS = (
    [f"young-male-{i}" for i in range(1, 7)]
    + [f"young-female-{i}" for i in range(1, 5)]
)


def avatar_url(seed: str | None) -> str | None:
    if not seed:
        return None
    return f"{DICEBEAR_STYLE_URL}?seed={quote(seed)}&backgroundColor={AVATAR_BACKGROUNDS}"
