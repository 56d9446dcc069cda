"""
Source payload -> canonical record.

Pure function, no I/O. The remote source has been seen in two shapes:
- full: `images.{jpg,webp}.{large_image_url,image_url,small_image_url}`
- reduced: a single `image` (or `image_url`) string

Both map onto the same reduced `AnimeRecord`; extra fields (genres, score,
...) are ignored. Anything that would produce an invalid record raises
`Malformed`.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from core.errors import Malformed

from .schemas import AiredInterval, AnimeRecord

# Largest first.
IMAGE_FORMATS = ("jpg", "webp")
IMAGE_SIZES = ("large_image_url", "image_url", "small_image_url")


def _record_id(payload: dict[str, Any]) -> int:
    raw = payload.get("mal_id", payload.get("id"))
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise Malformed(f"Payload has no integer id (got {raw!r}).")
    return raw


def _title(payload: dict[str, Any], record_id: int) -> str:
    raw = payload.get("title")
    if not isinstance(raw, str) or not raw.strip():
        raise Malformed(f"Payload for id {record_id} has no title.")
    return raw.strip()


def _optional_str(payload: dict[str, Any], key: str) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise Malformed(f"Field '{key}' must be a string (got {type(value).__name__}).")
    return value.strip() or None


def _episodes(payload: dict[str, Any]) -> int | None:
    value = payload.get("episodes")
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise Malformed(f"Field 'episodes' must be a non-negative integer (got {value!r}).")
    return value


def select_image(payload: dict[str, Any]) -> str | None:
    """
    Pick one representative image URL, largest available first.
    """
    images = payload.get("images")
    if isinstance(images, dict):
        for fmt in IMAGE_FORMATS:
            variants = images.get(fmt)
            if not isinstance(variants, dict):
                continue
            for size in IMAGE_SIZES:
                url = variants.get(size)
                if isinstance(url, str) and url.strip():
                    return url.strip()

    for key in ("image", "image_url"):
        url = payload.get(key)
        if isinstance(url, str) and url.strip():
            return url.strip()
    return None


def _aired(payload: dict[str, Any]) -> AiredInterval:
    raw = payload.get("aired")
    if raw is None:
        return AiredInterval()
    if not isinstance(raw, dict):
        raise Malformed("Field 'aired' must be an object.")
    try:
        return AiredInterval.model_validate({"from": raw.get("from"), "to": raw.get("to")})
    except ValidationError as e:
        raise Malformed(f"Field 'aired' has unparsable timestamps: {e.errors()[0]['msg']}") from e


def normalize(payload: Any) -> AnimeRecord:
    if not isinstance(payload, dict):
        raise Malformed("Payload must be a JSON object.")

    record_id = _record_id(payload)
    return AnimeRecord(
        id=record_id,
        url=_optional_str(payload, "url"),
        title=_title(payload, record_id),
        image=select_image(payload),
        episodes=_episodes(payload),
        aired=_aired(payload),
        synopsis=_optional_str(payload, "synopsis"),
    )
