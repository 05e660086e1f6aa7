# SPDX-License-Identifier: MIT
"""Tool descriptions for MCP server. Optimized for token efficiency."""

# ==================== IMAGE TOOL DESCRIPTIONS ====================

GENERATE_IMAGE = """Generate images with Imagen 3. Saves PNGs to IMAGE_PATH.

Params: prompt (max 1000 chars), width/height (64-2048), num_images (1-8), style, negative_prompt, guidance_scale (1-20), seed, steps, language

Example: generate_image("a lighthouse at dusk, oil painting", width=1024, height=768, num_images=2)"""

EDIT_IMAGE = """Edit an existing image with Imagen 3. Optional mask limits where the edit applies.

Params: image_path, prompt, mask_path (optional), guidance_scale, seed, num_images (1-8), language

Relative paths resolve against the output root."""

UPSCALE_IMAGE = """Upscale an image with Imagen 3.

Params: image_path, scale_factor (2|4|8)"""


# ==================== VIDEO TOOL DESCRIPTIONS ====================

GENERATE_VIDEO = """Generate a video with Veo. Blocks until done (up to 10 min), saves MP4 to VIDEO_PATH.

Params: prompt (max 2000 chars), duration (2-120 s), resolution (720p|1080p|4K), fps (24|30|60), style, camera_movement, aspect_ratio, language

Example: generate_video("drone shot over a rainforest", duration=8, resolution="1080p")"""

STYLE_TRANSFER_VIDEO = """Restyle an existing video with Veo. Blocks until done, saves MP4 to VIDEO_PATH.

Params: video_path, style_prompt, style, duration (max seconds), language"""


# ==================== SPEECH TOOL DESCRIPTIONS ====================

GENERATE_SPEECH = """Text-to-speech with Chirp 3 HD voices. Saves MP3 to AUDIO_PATH.

Params: prompt (max 5000 chars), voice (male|female|child|elderly), language (en|ja|es|fr|de|it|pt|ru|ko|zh), emotion (neutral|happy|sad|excited|calm|angry), speed (slow|normal|fast), pitch (low|normal|high)"""

GENERATE_LONG_SPEECH = """Text-to-speech for long text. Splits on sentence boundaries into 4000-char chunks, one MP3 per chunk.

Params: text, voice, language, emotion"""


# ==================== MUSIC TOOL DESCRIPTIONS ====================

GENERATE_MUSIC = """Generate music with Lyria. Blocks until done (up to 8 min), saves MP3 to AUDIO_PATH.

Params: prompt (max 1000 chars), genre (pop|rock|classical|jazz|electronic|ambient|hip-hop|country), mood (happy|sad|energetic|calm|mysterious|dramatic|romantic), tempo (slow|medium|fast or BPM 60-200), duration (10-300 s), instruments, key (C..B), scale (major|minor|pentatonic|blues)

Example: generate_music("warm lo-fi beat", genre="electronic", mood="calm", tempo=85, duration=60)"""

STYLE_INSPIRED_MUSIC = """Generate music inspired by a reference recording with Lyria.

Params: reference_audio_path, prompt, genre, mood, duration (10-300 s)"""

CONTINUE_MUSIC = """Continue an existing piece of music with Lyria.

Params: seed_audio_path, continuation_prompt, duration (10-300 s, default 30)"""

GENERATE_MULTIPART_MUSIC = """Generate a multi-part composition, one MP3 per part, in order.

Params: parts (list of {prompt, duration, instruments?, mood?}), genre, key (shared by all parts)"""


# ==================== MEDIA TOOL DESCRIPTIONS ====================

PROCESS_MEDIA = """Process audio/video with ffmpeg. Outputs go to MEDIA_PATH.

Operations: merge (concat, stream copy), extract_audio (MP3 192k), add_subtitles (exactly [video, subtitle_file]), trim (start_time, duration or end_time), resize (width, height, maintain_aspect_ratio), convert (format)

Params: operation, input_files, output_path (merge/add_subtitles only), options

Example: process_media("trim", ["clip.mp4"], options={"start_time": "00:00:05", "duration": "00:00:10"})"""

BATCH_PROCESS_MEDIA = """Run several process_media requests in order. Failures are recorded per item; the rest still run.

Params: operations (list of {operation, input_files, output_path?, options?})

Returns: results, total, succeeded, failed, summary"""

GET_SYSTEM_INFO = """Report the ffmpeg version, muxable formats and encodable codecs (up to 20 each), and available optional features."""
