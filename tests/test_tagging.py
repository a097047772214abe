"""Tests for artist/title tag stores."""

from __future__ import annotations

from pathlib import Path

import pytest

from idntag.errors import TagError, UnsupportedFileError
from idntag.tagging import (
    ID3TagStore,
    MP4TagStore,
    TagPair,
    VorbisTagStore,
    clear_tags,
    get_store_for_file,
    read_tags,
    write_tags,
)


@pytest.mark.parametrize(
    ("name", "store_type"),
    [
        ("song.mp3", ID3TagStore),
        ("SONG.MP3", ID3TagStore),
        ("song.flac", VorbisTagStore),
        ("song.ogg", VorbisTagStore),
        ("song.m4a", MP4TagStore),
    ],
)
def test_get_store_for_file(name: str, store_type: type):
    assert isinstance(get_store_for_file(Path(name)), store_type)


@pytest.mark.parametrize("name", ["song.wav", "cover.jpg", "README"])
def test_get_store_unsupported(name: str):
    with pytest.raises(UnsupportedFileError):
        get_store_for_file(Path(name))


def test_get_store_respects_extension_list():
    with pytest.raises(UnsupportedFileError):
        get_store_for_file(Path("song.flac"), extensions=[".mp3"])
    assert isinstance(get_store_for_file(Path("song.mp4"), extensions=[".mp4"]), MP4TagStore)


def test_tag_pair_complete():
    assert TagPair("ABBA", "Waterloo").complete
    assert not TagPair("ABBA", "").complete
    assert not TagPair().complete


def test_read_untagged_mp3(mp3_file: Path):
    assert read_tags(mp3_file) == TagPair()


def test_id3_write_and_read(mp3_file: Path):
    write_tags(mp3_file, "Björk", "Jóga")
    assert read_tags(mp3_file) == TagPair(artist="Björk", title="Jóga")


def test_id3_write_replaces_existing(mp3_file: Path):
    write_tags(mp3_file, "Old Artist", "Old Title")
    write_tags(mp3_file, "New Artist", "New Title")

    from mutagen.id3 import ID3

    tags = ID3(mp3_file)
    assert tags["TPE1"].text == ["New Artist"]
    assert tags["TIT2"].text == ["New Title"]
    assert tags.version[:2] == (2, 4)


def test_id3_clear(mp3_file: Path):
    write_tags(mp3_file, "ABBA", "Waterloo")
    clear_tags(mp3_file)
    assert read_tags(mp3_file) == TagPair()


def test_write_to_missing_file_raises_tag_error(tmp_path: Path):
    with pytest.raises(TagError):
        write_tags(tmp_path / "missing.mp3", "A", "T")


def test_read_corrupt_flac_raises_tag_error(tmp_path: Path):
    path = tmp_path / "broken.flac"
    path.write_bytes(b"not a flac file at all")
    with pytest.raises(TagError):
        read_tags(path)


def test_tag_error_names_file_only(tmp_path: Path):
    album = tmp_path / "secretalbum"
    album.mkdir()

    with pytest.raises(TagError) as excinfo:
        read_tags(album / "missing.mp3")

    assert "missing.mp3" in str(excinfo.value)
    assert "secretalbum" not in str(excinfo.value)
