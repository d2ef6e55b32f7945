LIBRARY_PROVIDER = "library"

ARTIST = "artist"
ALBUM = "album"
TRACK = "track"
PLAYLIST = "playlist"
AUDIOBOOK = "audiobook"
RADIO = "radio"
PODCAST = "podcast"
PODCAST_EPISODE = "podcast_episode"

MEDIA_TYPES = (ARTIST, ALBUM, TRACK, PLAYLIST, AUDIOBOOK, RADIO, PODCAST, PODCAST_EPISODE)


def _names(values):
    out = []
    for v in values or []:
        if isinstance(v, dict):
            name = v.get("name")
        else:
            name = getattr(v, "name", v)
        if isinstance(name, str) and name.strip():
            out.append(name.strip())
    return out


class ProviderMapping:
    def __init__(self, data):
        self.item_id = str(data.get("item_id") or "")
        self.provider_domain = data.get("provider_domain") or ""
        self.provider_instance = data.get("provider_instance") or ""
        available = data.get("available")
        self.available = available if isinstance(available, bool) else True

    def is_library(self):
        return self.provider_instance == LIBRARY_PROVIDER or self.provider_domain == LIBRARY_PROVIDER

    def to_dict(self):
        return {
            "item_id": self.item_id,
            "provider_domain": self.provider_domain,
            "provider_instance": self.provider_instance,
            "available": self.available,
        }


class MediaItem:
    media_type = TRACK

    def __init__(self, data):
        data = data or {}
        raw_id = data.get("item_id")
        if raw_id is None:
            raw_id = data.get("id")
        self.item_id = "" if raw_id is None else str(raw_id)
        self.provider = data.get("provider") or "unknown"
        self.name = data.get("name") or ""
        self.sort_name = data.get("sort_name")
        self.uri = data.get("uri")
        favorite = data.get("favorite")
        self.favorite = favorite if isinstance(favorite, bool) else None
        self.provider_mappings = [
            ProviderMapping(m) for m in (data.get("provider_mappings") or []) if isinstance(m, dict)
        ]
        metadata = data.get("metadata")
        self.metadata = metadata if isinstance(metadata, dict) else {}
        self.duration = data.get("duration")
        self._raw = dict(data)

    @property
    def identity(self):
        return self.uri or self.item_id

    @property
    def library_key(self):
        return f"{self.media_type}:{self.item_id}"

    def library_mapping(self):
        for m in self.provider_mappings:
            if m.provider_instance == LIBRARY_PROVIDER:
                return m
        return None

    @property
    def in_library(self):
        if self.provider == LIBRARY_PROVIDER:
            return True
        return self.library_mapping() is not None

    def to_dict(self):
        data = dict(self._raw)
        data.update(
            {
                "item_id": self.item_id,
                "provider": self.provider,
                "name": self.name,
                "media_type": self.media_type,
                "provider_mappings": [m.to_dict() for m in self.provider_mappings],
            }
        )
        if self.uri is not None:
            data["uri"] = self.uri
        if self.favorite is not None:
            data["favorite"] = self.favorite
        return data

    def with_favorite(self, favorite):
        data = self.to_dict()
        data["favorite"] = bool(favorite)
        return type(self)(data)

    def __repr__(self):
        return f"<{type(self).__name__} {self.provider}:{self.item_id} {self.name!r}>"


class Artist(MediaItem):
    media_type = ARTIST


class Album(MediaItem):
    media_type = ALBUM

    def __init__(self, data):
        super().__init__(data)
        self.artists = [Artist(a) for a in (data.get("artists") or []) if isinstance(a, dict)]
        self.album_type = data.get("album_type")
        year = data.get("year")
        self.year = year if isinstance(year, int) else None

    @property
    def artists_string(self):
        if not self.artists:
            return "Unknown Artist"
        return ", ".join(a.name for a in self.artists)


class Track(MediaItem):
    media_type = TRACK

    def __init__(self, data):
        super().__init__(data)
        self.artists = [Artist(a) for a in (data.get("artists") or []) if isinstance(a, dict)]
        album = data.get("album")
        self.album = Album(album) if isinstance(album, dict) else None

    @property
    def artists_string(self):
        if not self.artists:
            return "Unknown Artist"
        return ", ".join(a.name for a in self.artists)


class Playlist(MediaItem):
    media_type = PLAYLIST

    def __init__(self, data):
        super().__init__(data)
        self.owner = data.get("owner")
        self.is_editable = data.get("is_editable")
        self.track_count = data.get("track_count")


class Audiobook(MediaItem):
    media_type = AUDIOBOOK

    def __init__(self, data):
        super().__init__(data)
        self.authors = _names(data.get("authors"))
        self.narrators = _names(data.get("narrators"))

    @property
    def authors_string(self):
        return ", ".join(self.authors)

    @property
    def narrators_string(self):
        return ", ".join(self.narrators)


class RadioStation(MediaItem):
    media_type = RADIO


class Podcast(MediaItem):
    media_type = PODCAST


class PodcastEpisode(MediaItem):
    media_type = PODCAST_EPISODE


_VARIANTS = {
    ARTIST: Artist,
    ALBUM: Album,
    TRACK: Track,
    PLAYLIST: Playlist,
    AUDIOBOOK: Audiobook,
    RADIO: RadioStation,
    PODCAST: Podcast,
    PODCAST_EPISODE: PodcastEpisode,
}


def media_item_from_dict(data, media_type=None):
    """Build the matching variant; unknown tags parse as tracks like the server client."""
    if isinstance(data, MediaItem):
        return data
    data = data or {}
    tag = str(media_type or data.get("media_type") or TRACK).lower()
    cls = _VARIANTS.get(tag, Track)
    return cls(data)
