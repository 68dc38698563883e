"""clean_cow — strip unwanted subtitle text, subtitle tracks, and metadata from media files.

WHY: Downloaded media often carries junk: release-group adverts inside
subtitle cues, embedded subtitle tracks, and title tags. Reviewing the same
advert text over and over is tedious, so every keep/delete verdict an
operator gives is remembered in a shared document store, keyed by the
content hash of the cue text.

HOW: Two pipelines. Subtitle documents (.vtt, .srt) go through the cue
classifier, media containers (.mkv, .webm, .mp4) go through the container
state machine that wraps ffmpeg / mkvpropedit / mediainfo with a
backup-and-rollback protocol.

RULES:
- Decisions are keyed on trimmed cue text only, never on timing
- A container is never rewritten without a ``.backup`` sibling in place
- One file at a time; no automatic retries
"""

__version__ = "0.1.0"
