"""
Goal: Pydantic models for the shapes the helper client hands back to callers.
Normalized shapes are what callers see; raw_status() is the only raw escape hatch.
"""
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from webhelper.errors import StatusNormalizationError


class Resource(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    uri: str
    link: Optional[str] = None


class CurrentTrack(BaseModel):
    model_config = ConfigDict(frozen=True)

    track: Resource
    artist: Resource
    album: Resource


class PlaybackStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    playing: bool = False
    volume: float = 0.0
    time: float = 0.0
    current: Optional[CurrentTrack] = None

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "PlaybackStatus":
        """
        Map a raw status payload onto the stable shape.
        Missing scalars fall back to zero values; a track record is all or nothing.
        """
        track = raw.get("track")
        return cls(
            playing=bool(raw.get("playing") or False),
            volume=to_number(raw.get("volume")),
            time=max(0.0, to_number(raw.get("playing_position"))),
            current=_current(track) if track is not None else None,
        )


class HelperInformation(BaseModel):
    version: Optional[Union[int, str]] = None
    client_version: Optional[str] = None


class EnabledControls(BaseModel):
    previous_track: bool = False
    play_pause: bool = False
    next_track: bool = False


def to_number(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        return float(value) if value is not None else 0.0
    except (TypeError, ValueError):
        return 0.0


def _resource(track: Mapping[str, Any], key: str) -> Resource:
    res = track.get(key)
    if not isinstance(res, Mapping):
        raise StatusNormalizationError(f"track record is missing {key}")
    location = res.get("location")
    link = location.get("og") if isinstance(location, Mapping) else None
    try:
        return Resource(name=res.get("name"), uri=res.get("uri"), link=link)
    except ValidationError as e:
        raise StatusNormalizationError(f"malformed {key} in track record") from e


def _current(track: Any) -> CurrentTrack:
    if not isinstance(track, Mapping):
        raise StatusNormalizationError("track record is not an object")
    return CurrentTrack(
        track=_resource(track, "track_resource"),
        artist=_resource(track, "artist_resource"),
        album=_resource(track, "album_resource"),
    )
