import html
import re
from typing import Optional

import bleach


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Escape HTML special characters before interpolating user input into markup.
    Returns None if input is None.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        return value
    return html.escape(str(value), quote=True)


def html_to_text(html_content: str) -> str:
    """
    Plaintext rendering of an HTML email body.

    Block-level closers become line breaks, every tag is stripped with bleach
    and entities are unescaped. Blank lines are dropped.
    """
    if not html_content:
        return ""

    marked = re.sub(r"(?i)<br\s*/?>|</(p|div|tr|h[1-6]|li|td)>", "\n", html_content)
    # Drop <style>/<title> bodies; bleach would keep their text
    marked = re.sub(r"(?is)<(style|title|head)[^>]*>.*?</\1>", "", marked)
    stripped = bleach.clean(marked, tags=[], attributes={}, strip=True)
    text = html.unescape(stripped)

    lines = (re.sub(r"[ \t\xa0]+", " ", line).strip() for line in text.splitlines())
    return "\n".join(line for line in lines if line)
