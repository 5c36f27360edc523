import pytest

from services.document_preview import infer_file_type, is_http_url, normalize_embed_url, preview_kind


@pytest.mark.parametrize("url,expected", [
    ("https://docs.google.com/document/d/abc123/edit?usp=sharing",
     "https://docs.google.com/document/d/abc123/preview?usp=sharing"),
    ("https://docs.google.com/spreadsheets/d/abc/view",
     "https://docs.google.com/spreadsheets/d/abc/preview"),
    ("https://docs.google.com/document/d/abc/copy",
     "https://docs.google.com/document/d/abc/preview"),
    ("https://drive.google.com/file/d/xyz/view?usp=drive_link",
     "https://drive.google.com/file/d/xyz/preview?usp=drive_link"),
    ("https://example.com/some/view", "https://example.com/some/view"),
    ("not a url", "not a url"),
])
def test_normalize_embed_url(url, expected):
    assert normalize_embed_url(url) == expected


def test_figma_file_is_wrapped_in_embed_endpoint():
    url = "https://www.figma.com/file/KEY/Design?node-id=1:2"
    embedded = normalize_embed_url(url)
    assert embedded.startswith("https://www.figma.com/embed?embed_host=share&url=")
    assert "https%3A%2F%2Fwww.figma.com%2Ffile%2FKEY" in embedded


def test_figma_embed_url_is_left_alone():
    url = "https://www.figma.com/embed?embed_host=share&url=x"
    assert normalize_embed_url(url) == url


@pytest.mark.parametrize("content_type,filename,expected", [
    ("image/png", "a.bin", "image/png"),
    ("application/octet-stream", "report.pdf", "application/pdf"),
    (None, "photo.JPG", "image/jpeg"),
    (None, None, "application/octet-stream"),
])
def test_infer_file_type(content_type, filename, expected):
    assert infer_file_type(content_type, filename) == expected


@pytest.mark.parametrize("file_type,kind", [
    ("image/png", "image"),
    ("application/pdf", "pdf"),
    ("text/plain", "file"),
    (None, "file"),
])
def test_preview_kind(file_type, kind):
    assert preview_kind(file_type) == kind


def test_is_http_url():
    assert is_http_url("https://example.com/x")
    assert not is_http_url("ftp://example.com/x")
    assert not is_http_url("javascript:alert(1)")
