"""Prompt template compilation for Flex Photo.

Every prompt sent to the image provider is assembled from fixed sections
plus, optionally, text supplied by the user.  The sections always appear in
the same order because the downstream model weighs earlier instructions
differently from later ones:

Enhancement modes (``style``, ``background``, ``combined``)::

    [Fixed: mode introduction]

    [Fixed: iPhone 17 Pro aesthetic]          (style, combined)

    [Fixed: Monaco supercar background]       (background, combined)

    ADDITIONAL DIRECTION:
    [User prompt]                             (only when supplied)

    [Fixed: subject preservation]

    [Fixed: mode closing line]

Two-person Polaroid::

    [Fixed: introduction]

    [Fixed: Polaroid aesthetic]

    WHAT THEY'RE DOING:
    [User scene description]

    [Fixed: preserve both people]

    [Fixed: closing line]

The describe-then-generate backend appends the vision model's description
of the two people as a final section (see :func:`compose_generation_prompt`).

Each section is separated by a blank line.

Usage
-----
::

    compiled = build_enhance_prompt("combined", "Make it feel like race week.")
    polaroid = build_polaroid_prompt("Sharing ice cream on a pier at sunset")
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from flexphoto.core.openai_client import SubjectDescription


@dataclass(frozen=True)
class EnhanceMode:
    """A named single-photo transformation."""

    id: str
    label: str
    description: str
    intro: str
    include_style: bool
    include_background: bool
    closing: str


# ---------------------------------------------------------------------------
# Fixed sections.
# ---------------------------------------------------------------------------

_IPHONE_AESTHETIC = """IPHONE 17 PRO LOOK (critical for realism):
- Apple color science: true-to-life skin tones with a gentle, natural warmth
- Crisp detail and micro-contrast without visible over-sharpening
- Smart HDR balance: recovered highlights and clean, lifted shadows
- Rich but believable color, never oversaturated
- Natural depth of field, as if shot on the 48MP main camera at 24mm
- Low noise and no compression artifacts"""

_MONACO_BACKGROUND = """NEW BACKGROUND:
- Replace the background with the Monaco harbour at golden hour
- A luxury supercar parked just behind the subject, glossy paint catching the light
- Superyachts in the marina and Monte Carlo architecture softly out of focus
- Light on the subject must match the direction, colour and warmth of the new scene
- Clean edges around hair and clothing, no halo or cut-out look"""

_PRESERVE_SUBJECT = """PRESERVE THE PERSON:
- Keep the face, features, and likeness EXACTLY as they appear in the original photo
- Keep the pose, expression, clothing, and hair unchanged
- Do not add, remove, or reshape any part of the person"""

_POLAROID_INTRO = (
    "Create an authentic vintage Polaroid photograph of the two people from the uploaded photos."
)

_POLAROID_AESTHETIC = """POLAROID AESTHETIC (critical for realism):
- Classic Polaroid instant film look with slightly faded, warm colors
- Natural film grain throughout the image
- Soft focus with slight blur at edges
- That authentic "flash photography" look
- White Polaroid frame border around the image"""

_POLAROID_PRESERVE = """PRESERVE BOTH PEOPLE:
- Keep both people's faces, features, and likeness EXACTLY as they appear in their uploaded photos
- Their clothing, hair, and distinguishing features should match the originals
- Natural poses and expressions that fit the scene"""

_POLAROID_CLOSING = (
    "The final image should look like a genuine Polaroid that a friend snapped - nostalgic, "
    "warm, and authentic. Make it feel like a real captured moment between these two people."
)

DESCRIBE_TWO_PEOPLE_INSTRUCTION = (
    "Analyze these two photos. For each person, describe in detail: their face (skin tone, "
    "facial features, hair color/style), their clothing, their body type, and any "
    "distinguishing features. Label them as Person 1 and Person 2."
)

ENHANCE_MODES: dict[str, EnhanceMode] = {
    "style": EnhanceMode(
        id="style",
        label="iPhone 17 Pro",
        description="Color grading & quality",
        intro="Enhance this photo so it looks like it was taken on an iPhone 17 Pro.",
        include_style=True,
        include_background=False,
        closing=(
            "Keep the original framing and background. The result should look like the same "
            "moment, captured with a flagship phone camera."
        ),
    ),
    "background": EnhanceMode(
        id="background",
        label="Monaco Supercar",
        description="Luxury background",
        intro="Place the person from this photo into a luxury Monaco supercar scene.",
        include_style=False,
        include_background=True,
        closing=(
            "The result should look like a real photo taken on location in Monaco, "
            "not a composite."
        ),
    ),
    "combined": EnhanceMode(
        id="combined",
        label="Full Flex",
        description="Both enhancements",
        intro=(
            "Transform this photo into a luxury shot in Monaco that looks like it was taken "
            "on an iPhone 17 Pro."
        ),
        include_style=True,
        include_background=True,
        closing=(
            "The result should look like a real iPhone 17 Pro photo taken on location in "
            "Monaco - polished, aspirational, and believable."
        ),
    ),
}

# Mode names used by earlier versions of the frontend.
MODE_ALIASES: dict[str, str] = {
    "iphone17pro": "style",
    "monaco": "background",
    "full": "combined",
}


def resolve_mode(mode: str) -> EnhanceMode | None:
    """Look up an enhancement mode by id or legacy alias."""
    key = mode.strip().lower()
    return ENHANCE_MODES.get(MODE_ALIASES.get(key, key))


def build_enhance_prompt(mode: str, user_prompt: str = "") -> str:
    """Compile the edit instruction for a single-photo enhancement.

    Args:
        mode: Mode id (``style``, ``background``, ``combined``) or alias.
        user_prompt: Optional extra direction from the user.  Omitted when
            blank.

    Returns:
        The compiled prompt with sections separated by blank lines.

    Raises:
        ValueError: If *mode* is not a known enhancement mode.
    """
    enhance_mode = resolve_mode(mode)
    if enhance_mode is None:
        raise ValueError(f"Unknown enhancement mode: {mode}")

    parts: list[str] = [enhance_mode.intro]

    if enhance_mode.include_style:
        parts.append(_IPHONE_AESTHETIC)
    if enhance_mode.include_background:
        parts.append(_MONACO_BACKGROUND)

    stripped = user_prompt.strip()
    if stripped:
        parts.append(f"ADDITIONAL DIRECTION:\n{stripped}")

    parts.append(_PRESERVE_SUBJECT)
    parts.append(enhance_mode.closing)

    return "\n\n".join(parts)


def build_polaroid_prompt(user_prompt: str) -> str:
    """Compile the two-person vintage Polaroid prompt.

    Args:
        user_prompt: What the two people are doing together.

    Returns:
        The compiled prompt.
    """
    parts = [
        _POLAROID_INTRO,
        _POLAROID_AESTHETIC,
        f"WHAT THEY'RE DOING:\n{user_prompt.strip()}",
        _POLAROID_PRESERVE,
        _POLAROID_CLOSING,
    ]
    return "\n\n".join(parts)


def compose_generation_prompt(base_prompt: str, description: SubjectDescription) -> str:
    """Append a subject description to a compiled prompt.

    The description text is included verbatim, even when empty.
    """
    return (
        f"{base_prompt}\n\nDETAILED DESCRIPTION OF THE TWO PEOPLE TO INCLUDE:\n"
        f"{description.text}"
    )
