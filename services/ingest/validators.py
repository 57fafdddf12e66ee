from __future__ import annotations


class ValidationError(ValueError):
    pass


def validate_content_type(content_type: str | None, allowed_types: tuple[str, ...]) -> None:
    if (content_type or "").lower() not in allowed_types:
        raise ValidationError("Invalid file type. Only MP4, WebM, and MOV files are allowed.")


def validate_file_size(size: int, max_bytes: int) -> None:
    if size > max_bytes:
        raise ValidationError(f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB.")


def validate_duration(duration: float, max_duration_s: float) -> None:
    if duration > max_duration_s:
        minutes = max_duration_s / 60
        raise ValidationError(f"Video duration must be less than {minutes:g} minutes")
