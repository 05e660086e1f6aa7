# SPDX-License-Identifier: MIT
"""MCP tool implementations for sosaku.

This package contains the business logic behind each FastMCP tool, organized by category:
- image: Imagen generation, editing and upscaling
- video: Veo generation and style transfer
- speech: Chirp 3 HD text-to-speech, including long-form text
- music: Lyria generation, style-inspired generation, continuation and multi-part pieces
- media: ffmpeg processing, batch processing and system information

Tools are registered with FastMCP in ``sosaku.server``.
"""
