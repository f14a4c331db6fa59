"""Tests for image downloads."""

import httpx
import pytest

from pixelprompt.downloads import ImageDownloader
from pixelprompt.models import GeneratedImage


def make_image(n: int) -> GeneratedImage:
    return GeneratedImage(
        id=f"img-{n}",
        url=f"https://img.example/{n}.png",
        prompt="a cat",
        size="512x512",
        timestamp=0,
        style="fantasy",
    )


@pytest.fixture
def transport():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.startswith("/missing"):
            return httpx.Response(404)
        return httpx.Response(200, content=b"PNGDATA" + request.url.path.encode())

    return httpx.MockTransport(handler)


class TestDownloadImage:
    """Tests for download_image method."""

    def test_saves_file(self, tmp_path, transport):
        """Should write the response body and finish at 100%."""
        with ImageDownloader(tmp_path, transport=transport) as downloader:
            path = downloader.download_image(make_image(1), filename="cat.png")

            assert path == tmp_path / "cat.png"
            assert path.read_bytes() == b"PNGDATA/1.png"
            assert downloader.state.download_progress == 100
            assert downloader.state.last_downloaded_id == "img-1"
            assert not downloader.state.is_downloading

    def test_default_filename(self, tmp_path, transport):
        """Should derive the filename from prompt, style and size."""
        with ImageDownloader(tmp_path, transport=transport) as downloader:
            path = downloader.download_image(make_image(1))
            assert path.name.startswith("ai-image_a-cat_")
            assert path.name.endswith("_fantasy_512x512.png")

    def test_inline_data_url(self, tmp_path):
        """Should decode data: URLs locally without any HTTP request."""
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(500)

        image = make_image(1)
        image.url = "data:image/png;base64,iVBORw0KGgo="

        with ImageDownloader(tmp_path, transport=httpx.MockTransport(handler)) as downloader:
            path = downloader.download_image(image, filename="inline.png")

            assert path.read_bytes() == b"\x89PNG\r\n\x1a\n"
            assert downloader.state.error is None
            assert requests == []

    def test_malformed_data_url(self, tmp_path, transport):
        """Should record a failure for an undecodable data: URL."""
        image = make_image(1)
        image.url = "data:image/png;base64,@@not-base64@@"

        with ImageDownloader(tmp_path, transport=transport) as downloader:
            assert downloader.download_image(image) is None
            assert downloader.state.error == "Download failed - unable to save image"

    def test_failure_is_recorded(self, tmp_path, transport):
        """Should set the error and reset progress when the fetch fails."""
        image = make_image(1)
        image.url = "https://img.example/missing.png"

        with ImageDownloader(tmp_path, transport=transport) as downloader:
            assert downloader.download_image(image) is None
            assert downloader.state.error == "Download failed - unable to save image"
            assert downloader.state.download_progress == 0

            downloader.clear_error()
            assert downloader.state.error is None


class TestDownloadMultiple:
    """Tests for download_multiple method."""

    def test_serial_with_delay_and_progress(self, tmp_path, transport):
        """Should download in order, pausing between items but not after the last."""
        sleeps = []
        progress = []

        with ImageDownloader(tmp_path, delay=0.5, transport=transport, sleep=sleeps.append) as downloader:
            saved = downloader.download_multiple(
                [make_image(n) for n in range(1, 4)],
                on_progress=lambda done, total, pct: progress.append((done, total, round(pct))),
            )

            assert len(saved) == 3
            assert [p.name.rsplit("_", 1)[-1] for p in saved] == ["1.png", "2.png", "3.png"]
            assert sleeps == [0.5, 0.5]
            assert progress == [(1, 3, 33), (2, 3, 67), (3, 3, 100)]
            assert downloader.state.error is None

    def test_partial_failure(self, tmp_path, transport):
        """Should keep going and report how many images were saved."""
        images = [make_image(1), make_image(2)]
        images[1].url = "https://img.example/missing.png"

        with ImageDownloader(tmp_path, transport=transport, sleep=lambda s: None) as downloader:
            saved = downloader.download_multiple(images)

            assert len(saved) == 1
            assert downloader.state.error == "Downloaded 1/2 images successfully"
            assert downloader.state.download_progress == 100

    def test_empty(self, tmp_path, transport):
        """Should do nothing for an empty list."""
        with ImageDownloader(tmp_path, transport=transport) as downloader:
            assert downloader.download_multiple([]) == []
            assert not downloader.state.is_downloading
