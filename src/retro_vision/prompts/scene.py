"""Prompt templates for the two pipeline stages.

SCENE_DIRECTOR — stage 1, turns a dialogue line into a short isometric scene
description. Variables: {dialogue}, {theme_id}, {theme_description}.
PIXEL_ART_RENDER — stage 2, renders that description as an NES screenshot.
Variables: {scene_description}, {theme_visual}.
"""

from __future__ import annotations

FALLBACK_DESCRIPTION = "A generic 8-bit pixel art background."

SCENE_DIRECTOR = """\
You are an expert at directing retro 8-bit video game scenes (Famicom/NES style).

User's dialogue line: "{dialogue}"
Selected Style: {theme_id} ({theme_description})

Task: Create a visual description of a video game scene that captures the *emotion* \
and *story* of the dialogue.

CRITICAL - Character Dynamics & Interaction:
- Analyze the dialogue to determine the characters.
- IF MULTIPLE CHARACTERS ARE PRESENT: They should be **INTERACTING**.
  - Describe specific body language (e.g., pointing, holding hands, handing an item, comforting).
- If solitary: Describe the character engaging with the environment (looking at the sky, \
sitting at a desk, etc.).

Requirements:
- Style: 8-bit pixel art, Famicom/NES color palette.
- Perspective: **Isometric view** (like Final Fantasy Tactics, Tactics Ogre, Solstice, or Landstalker).
- Mood: Match the emotion of the text (e.g., lonely, hopeful, tense, cozy).
- Content: Describe the environment and the characters' placement/interaction. Use lighting \
and weather to tell the story.
- IMPORTANT: Do NOT include any text bubbles or text inside the image description. The text \
will be added later via UI.
- Keep it concise (under 50 words).

Output only the description."""

PIXEL_ART_RENDER = """\
Create an authentic 8-bit NES/Famicom video game screenshot.

Scene Context: {scene_description}
Style Specifics: {theme_visual}

VISUAL RULES (STRICTLY ENFORCE):
1. HARDWARE LIMITATIONS: Simulate the NES 54-color palette limitation. Use high contrast.
2. PIXELATION: The image must look like it was drawn pixel-by-pixel. MACRO PIXELS.
3. SHADING: Use DITHERING (checkerboard patterns) for shading. DO NOT use gradients, soft light, or bloom.
4. EDGES: Hard, aliased edges only. NO anti-aliasing.
5. VIEWPOINT: Top-down Isometric perspective. The view should be zoomed out (not too close) \
to capture the scene. Ensure correct proportions and scale for all objects.
6. NO TEXT: The image must contain NO text, labels, or HUD elements.

Negative Prompt:
Vector art, smooth lines, anti-aliasing, blur, bloom, glow effects, modern indie game style, \
high resolution details, photorealism, 3D rendering, gradients, soft shadows, oil painting, \
watercolor, text, UI overlay, glitch, noise, chromatic aberration."""


def build_description_prompt(dialogue: str, theme_id: str, theme_description: str) -> str:
    """Fill SCENE_DIRECTOR for one dialogue line."""
    return SCENE_DIRECTOR.format(
        dialogue=dialogue,
        theme_id=theme_id,
        theme_description=theme_description,
    )


def build_image_prompt(scene_description: str, theme_visual: str) -> str:
    """Fill PIXEL_ART_RENDER for one scene description."""
    return PIXEL_ART_RENDER.format(
        scene_description=scene_description,
        theme_visual=theme_visual,
    )
