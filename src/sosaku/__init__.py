# SPDX-License-Identifier: MIT
"""sosaku: MCP server for Google generative media (Imagen, Veo, Chirp, Lyria) and ffmpeg processing."""

__version__ = "0.1.0"
