"""
Pytest configuration and shared fixtures.
"""

import json
import pytest
import sys
import tempfile
import shutil
from pathlib import Path
from typing import Generator

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ariadne.models.entities import Collection, Track
from ariadne.models.links import Link, Embed
from ariadne.services.catalog_store import CatalogStore


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def empty_store() -> CatalogStore:
    """A catalog with nothing in it."""
    return CatalogStore()


@pytest.fixture
def sample_store() -> CatalogStore:
    """
    Two unrelated albums, each opening with a track titled "Intro".

    spring (UPC1, 2024-01-01): Intro, Blossom
    winter (no UPC, 2023-12-01): Intro, Snowfall
    """
    spring = Collection(
        id="spring",
        title="Spring",
        artist="Test Artist",
        release_date="2024-01-01",
        track_count=2,
        upc="UPC1",
        links=[Link(platform="spotify", label="Spotify", url="https://open.spotify.com/album/1")],
        refs={"distrokid": {"albumuuid": "dk-spring"}},
    )
    winter = Collection(
        id="winter",
        title="Winter",
        artist="Test Artist",
        release_date="2023-12-01",
        track_count=2,
    )
    tracks = [
        Track(id="spring-1", title="Intro", collection_id="spring", track_no=1, isrc="USAAA2400001"),
        Track(id="spring-2", title="Blossom", collection_id="spring", track_no=2),
        Track(id="winter-1", title="Intro", collection_id="winter", track_no=1),
        Track(
            id="winter-2",
            title="Snowfall",
            collection_id="winter",
            track_no=2,
            embeds=[Embed(platform="netease", label="NetEase", url="https://music.163.com/outchain/player?type=2&id=42", height=86)],
        ),
    ]
    return CatalogStore(collections=[spring, winter], tracks=tracks)


@pytest.fixture
def catalog_file(temp_dir: Path, sample_store: CatalogStore) -> Path:
    """The sample catalog written to disk."""
    path = temp_dir / "catalog.json"
    path.write_text(json.dumps(sample_store.to_document(), ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture
def write_json(temp_dir: Path):
    """Write any JSON value to a file in the temp dir."""
    def _write(name: str, data) -> Path:
        path = temp_dir / name
        path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
        return path
    return _write
